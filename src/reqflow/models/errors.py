"""reqflowのカスタム例外クラス。"""


class ReqflowError(Exception):
    """reqflowの基底例外クラス。"""


class SessionAlreadyActiveError(ReqflowError):
    """既にアクティブなセッションが存在する場合の例外。"""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"There is already an active requirements session: {session_id}. "
            "End it with requirements-end or check it with requirements-status."
        )
        self.session_id = session_id


class NoActiveSessionError(ReqflowError):
    """アクティブなセッションが存在しない場合の例外。"""

    def __init__(self, operation: str, message: str | None = None) -> None:
        super().__init__(message or f"No active requirements session ({operation}).")
        self.operation = operation


class MetadataMissingError(NoActiveSessionError):
    """レジストリが指すセッションのメタデータが存在しない場合の例外。

    レジストリは自己修復済み（ポインタ削除済み）の状態で送出される。
    """

    def __init__(self, session_id: str, operation: str) -> None:
        super().__init__(
            operation,
            f"Metadata not found for active session: {session_id}. "
            f"The registry pointer was cleared; no active requirements session ({operation}).",
        )
        self.session_id = session_id


class StaleRegistryError(NoActiveSessionError):
    """終了済みセッションをレジストリが指していた場合の例外。"""

    def __init__(self, session_id: str, operation: str) -> None:
        super().__init__(
            operation,
            f"Registry pointed at already ended session: {session_id}. "
            f"The registry pointer was cleared; no active requirements session ({operation}).",
        )
        self.session_id = session_id


class SessionNotActiveError(ReqflowError):
    """終了済みセッションを変更しようとした場合の例外。"""

    def __init__(self, session_id: str, status: str, operation: str) -> None:
        super().__init__(f"Session {session_id} is {status}; cannot {operation}.")
        self.session_id = session_id
        self.status = status
        self.operation = operation


class InvalidPhaseError(ReqflowError):
    """現在のフェーズでは許可されない操作の例外。"""

    def __init__(self, session_id: str, phase: str, operation: str) -> None:
        super().__init__(f"Session {session_id} is in phase {phase}; cannot {operation}.")
        self.session_id = session_id
        self.phase = phase
        self.operation = operation


class FolderCollisionError(ReqflowError):
    """同一フォルダ名のセッションが既に存在する場合の例外。"""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session folder already exists: {session_id}. "
            "Wait a minute or rephrase the request to get a distinct folder name."
        )
        self.session_id = session_id


class InvalidSettingsError(ReqflowError):
    """質問数の設定が範囲外の場合の例外。"""

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid settings: {message}")


class AnswerOutOfOrderError(ReqflowError):
    """回答の順序が不正な場合の例外。"""

    def __init__(self, session_id: str, phase: str, index: int, expected: int | None) -> None:
        if expected is None:
            detail = f"phase {phase} has no unanswered questions"
        else:
            detail = f"expected question {expected}"
        super().__init__(f"Answer out of order for session {session_id}: got question {index} in {phase}, {detail}.")
        self.session_id = session_id
        self.phase = phase
        self.index = index
        self.expected = expected


class QuestionNotFoundError(ReqflowError):
    """指定された質問が質問バンクに存在しない場合の例外。"""

    def __init__(self, phase: str, index: int) -> None:
        super().__init__(f"Question not found: {phase}[{index}]")
        self.phase = phase
        self.index = index


class StorageError(ReqflowError):
    """ストレージ操作のエラー。"""


class MetadataCorruptError(StorageError):
    """セッションのメタデータが解析できない場合の例外。"""

    def __init__(self, session_id: str, detail: str) -> None:
        super().__init__(
            f"Invalid metadata for session {session_id}: {detail}. "
            "Delete the session with requirements-end (action: delete) or start a new one."
        )
        self.session_id = session_id
