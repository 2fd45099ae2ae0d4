"""SessionGate: ブラウザセッション単位の認証済みIdentityの保持と変更通知"""
from typing import Callable, Optional

from daily_question.core.errors import NotAuthenticated
from daily_question.core.logging import get_logger

logger = get_logger(__name__)

IdentityListener = Callable[[Optional[str]], None]


class SessionGate:
    """現在のIdentity (なければNone) を保持し、サインイン/サインアウトを購読者に通知する"""

    def __init__(self, identity: Optional[str] = None):
        self._identity = identity
        self._listeners: list[IdentityListener] = []

    @property
    def current_identity(self) -> Optional[str]:
        return self._identity

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """購読を登録し、解除用の関数を返す"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_identity(self, identity: Optional[str]) -> bool:
        """Identityを設定。値が変わった場合のみ通知してTrueを返す"""
        if identity == self._identity:
            return False
        previous = self._identity
        self._identity = identity
        logger.info(f"Identity変更: signed_in={identity is not None}, had_previous={previous is not None}")
        for listener in list(self._listeners):
            listener(identity)
        return True

    def sign_out(self) -> bool:
        return self.set_identity(None)

    def require_identity(self) -> str:
        if self._identity is None:
            raise NotAuthenticated()
        return self._identity
