"""
Rendering collaborator.

CashierView records what a host page would show. Hosts that drive a real UI
subclass it and override the hooks; the gate only relies on these methods.

INVARIANT: at most one message surface (errors / messages / consent form /
code entry) is active at any time.
"""
from typing import Any, Dict, Optional

from cashier_gate.messages import CANNED


class CashierView:
    def __init__(self, *, verification_code: Optional[str] = None, consent: Any = None):
        self.heading = ""
        self.loading = True
        self.panel: Optional[str] = None
        self.message_id: Optional[str] = None
        self.message: Optional[str] = None
        self.consent_form_visible = False
        self.code_entry_visible = False
        self.frame_url: Optional[str] = None
        self.frame_height: Optional[float] = None
        self.redirect_url: Optional[str] = None
        self.account_status_refreshes = 0
        # Input the user already provided (consumed at most once each)
        self._pending_code = verification_code
        self._pending_consent = consent

    def set_heading(self, text: str) -> None:
        self.heading = text

    def hide_loading(self) -> None:
        self.loading = False

    def hide_all(self) -> None:
        self.panel = None
        self.message_id = None
        self.message = None
        self.consent_form_visible = False
        self.code_entry_visible = False

    def show_message(self, message_id: str, message: Optional[str] = None, panel: str = "messages") -> None:
        self.hide_all()
        self.panel = panel
        self.message_id = message_id
        self.message = message if message else CANNED.get(message_id, "")
        self.hide_loading()

    def show_error(self, message_id: str, message: Optional[str] = None) -> None:
        self.show_message(message_id, message, panel="errors")

    async def prompt_verification_code(self) -> Optional[str]:
        """Show the code-entry affordance; resolves with the code once supplied."""
        self.hide_all()
        self.code_entry_visible = True
        code, self._pending_code = self._pending_code, None
        return code or None

    async def show_consent_form(self) -> Any:
        """Show the consent form; resolves with the submitted acknowledgements."""
        self.hide_all()
        self.hide_loading()
        self.consent_form_visible = True
        consent, self._pending_consent = self._pending_consent, None
        return consent

    def embed(self, url: str, height: Optional[float] = None) -> None:
        self.hide_all()
        self.frame_url = url
        if height is not None:
            self.frame_height = height
        self.hide_loading()

    def set_frame_height(self, height: float) -> None:
        self.frame_height = height

    def redirect(self, url: str) -> None:
        self.redirect_url = url

    def display_account_status(self, status: Dict[str, Any]) -> None:
        """Header refresh hook; the recording view only counts refreshes."""
        self.account_status_refreshes += 1

    def state(self) -> Dict[str, Any]:
        return {
            "heading": self.heading,
            "loading": self.loading,
            "panel": self.panel,
            "messageId": self.message_id,
            "message": self.message,
            "consentFormVisible": self.consent_form_visible,
            "codeEntryVisible": self.code_entry_visible,
            "frameUrl": self.frame_url,
            "frameHeight": self.frame_height,
            "redirectUrl": self.redirect_url,
        }
