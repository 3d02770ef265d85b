"""レビュー対象の解決、フィルタ済み差分の生成、GitHub diff position への変換。

CLI は reviewcode.cli、プログラムからの一括実行は reviewcode.engine.prepare_review。
"""
