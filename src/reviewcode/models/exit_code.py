"""終了コードの定義。"""

from enum import IntEnum


class ExitCode(IntEnum):
    """プロセス終了コード。

    ambiguous / prompt は呼び出し側の判断待ちであり、エラーではないため SUCCESS で終了する。
    """

    SUCCESS = 0
    NO_CHANGES = 1
    EXECUTION_ERROR = 3
    INPUT_ERROR = 4
