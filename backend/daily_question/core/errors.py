"""Q&Aフローのエラー分類

- LookupFailure: 質問・回答の読み込みが完了しなかった
- ValidationFailure: 空の回答、または質問未解決での送信 (ストアには到達しない)
- WriteFailure: 回答のupsertが完了しなかった
- StoreError: ストアアダプタ層の失敗 (上位でLookup/Writeに変換)

「今日の質問なし」はエラーではなく NO_QUESTION 状態として扱う。
"""


class QAError(Exception):
    """ユーザー向けメッセージを持つQ&Aエラーの基底"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LookupFailure(QAError):
    pass


class ValidationFailure(QAError):
    pass


class WriteFailure(QAError):
    pass


class StoreError(Exception):
    """外部ストアの読み書き失敗"""


class NotAuthenticated(Exception):
    """SessionGateにIdentityがない"""
