"""ファイルベースで再開可能な要件定義インタビューのMCPサーバー。"""
