"""ページセッション: 1ブラウザセッション分の表示状態と状態遷移

状態遷移:
    UNRESOLVED → LOADING → {NO_QUESTION | RESOLVED | FAILED}
    RESOLVED → SAVING → {RESOLVED(更新後) | FAILED(直前のデータを保持)}

解決パスは開始順に番号を振り、最後に開始したパスの結果だけを反映する。
古いパスの結果は到着しても破棄する (読み込み自体は中断しない)。
"""
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union

from daily_question.core.errors import QAError, ValidationFailure
from daily_question.core.logging import get_logger
from daily_question.services.qa_resolver import DailyQAResolver, ParticipantPair, ResolutionStatus
from daily_question.services.session_gate import SessionGate
from daily_question.services.stores import AnswerRecord, QuestionRecord

logger = get_logger(__name__)

MSG_SAVED = "Antwort gespeichert."

# 保持するページセッション数の上限 (古いものから破棄)
MAX_PAGE_SESSIONS = 256


class PageState(str, Enum):
    UNRESOLVED = "unresolved"
    LOADING = "loading"
    NO_QUESTION = "no_question"
    RESOLVED = "resolved"
    FAILED = "failed"
    SAVING = "saving"


class QAPageSession:
    """質問・回答スロット・下書き・ステータスメッセージを保持する"""

    def __init__(self):
        self.state = PageState.UNRESOLVED
        self.question: Optional[QuestionRecord] = None
        self.participants = ParticipantPair()
        self.draft_text = ""
        self.message: Optional[str] = None
        self.last_error: Optional[QAError] = None
        self._pass_id = 0

    @property
    def mine(self) -> Optional[AnswerRecord]:
        return self.participants.mine

    @property
    def partner_other(self) -> Optional[AnswerRecord]:
        return self.participants.partner_other

    @property
    def current_pass(self) -> int:
        return self._pass_id

    def reset(self) -> None:
        """サインアウト時などに全状態をクリア"""
        self._pass_id += 1
        self.state = PageState.UNRESOLVED
        self.question = None
        self.participants = ParticipantPair()
        self.draft_text = ""
        self.message = None
        self.last_error = None

    def on_identity_changed(self, identity: Optional[str]) -> None:
        # 別人の結果を表示しないよう、Identityが変わったら破棄
        self.reset()

    def set_draft(self, text: str) -> None:
        self.draft_text = text

    async def load(
        self,
        resolver: DailyQAResolver,
        identity: str,
        today: Union[date, str],
    ) -> bool:
        """
        解決パスを1回実行する

        Returns:
            結果を反映した場合True。より新しいパスが開始済みで破棄した場合False
        """
        self._pass_id += 1
        pass_id = self._pass_id
        self.state = PageState.LOADING
        self.message = None
        self.question = None
        self.participants = ParticipantPair()

        try:
            resolution = await resolver.resolve_today(identity, today)
        except QAError as e:
            if pass_id != self._pass_id:
                logger.debug(f"古い解決パスのエラーを破棄: pass={pass_id}, current={self._pass_id}")
                return False
            logger.warning(f"解決失敗: {e.message}")
            self.state = PageState.FAILED
            self.message = e.message
            return True

        if pass_id != self._pass_id:
            logger.debug(f"古い解決パスの結果を破棄: pass={pass_id}, current={self._pass_id}")
            return False

        if resolution.status == ResolutionStatus.NO_QUESTION:
            self.state = PageState.NO_QUESTION
            self.message = resolution.message
            return True

        self.state = PageState.RESOLVED
        self.question = resolution.question
        self.participants = resolution.participants
        self.draft_text = resolution.draft_text
        return True

    async def submit(
        self,
        resolver: DailyQAResolver,
        identity: Optional[str],
        text: Optional[str] = None,
    ) -> Optional[AnswerRecord]:
        """
        自分の回答を保存する (text省略時は下書きを送信)

        検証エラーは状態を変えずメッセージのみ設定。保存失敗は FAILED
        (質問・スロットは保持) に遷移する。どちらの場合も捕捉した例外を
        last_error に残す (新しいパスが始まっていて表示に反映しない場合も)。

        Returns:
            保存された回答。失敗時はNone
        """
        if text is not None:
            self.draft_text = text
        self.message = None
        self.last_error = None

        previous_state = self.state
        pass_id = self._pass_id
        self.state = PageState.SAVING

        try:
            saved = await resolver.submit_answer(identity, self.question, self.draft_text)
        except ValidationFailure as e:
            self.state = previous_state
            self.message = e.message
            self.last_error = e
            return None
        except QAError as e:
            self.last_error = e
            if pass_id == self._pass_id:
                self.state = PageState.FAILED
                self.message = e.message
            else:
                logger.debug(f"古い保存エラーを表示に反映しない: pass={pass_id}, current={self._pass_id}")
            return None

        if pass_id != self._pass_id:
            # 保存中に新しい解決パスが始まった: 書き込みは完了済みだが表示には反映しない
            logger.debug(f"保存結果の反映をスキップ: pass={pass_id}, current={self._pass_id}")
            return saved

        self.participants = self.participants.with_mine(saved)
        self.draft_text = saved.answer_text
        self.state = PageState.RESOLVED
        self.message = MSG_SAVED
        return saved

    def snapshot(self) -> dict:
        """API応答用の表示状態"""
        return {
            "state": self.state.value,
            "question": self.question.to_dict() if self.question else None,
            "mine": self.mine.to_dict() if self.mine else None,
            "partner_other": self.partner_other.to_dict() if self.partner_other else None,
            "draft_text": self.draft_text,
            "message": self.message,
        }


@dataclass
class BrowserSession:
    """SessionGateとページ状態の組"""

    gate: SessionGate
    page: QAPageSession


class PageSessionRegistry:
    """セッションCookie → BrowserSession (プロセス内)"""

    def __init__(self, max_sessions: int = MAX_PAGE_SESSIONS):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, BrowserSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get_or_create(self, session_key: str) -> BrowserSession:
        entry = self._sessions.get(session_key)
        if entry is not None:
            self._sessions.move_to_end(session_key)
            return entry

        gate = SessionGate()
        page = QAPageSession()
        gate.subscribe(page.on_identity_changed)
        entry = BrowserSession(gate=gate, page=page)
        self._sessions[session_key] = entry

        while len(self._sessions) > self.max_sessions:
            self._sessions.popitem(last=False)
        return entry

    def discard(self, session_key: Optional[str]) -> None:
        """サインアウト: Identityをクリアしてから破棄"""
        if not session_key:
            return
        entry = self._sessions.pop(session_key, None)
        if entry is not None:
            entry.gate.sign_out()


page_sessions = PageSessionRegistry()
