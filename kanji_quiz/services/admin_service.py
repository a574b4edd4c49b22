import hmac
import logging

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, passcode: str):
        if not (passcode.isdigit() and len(passcode) == 4):
            raise ValueError("Parent passcode must be 4 digits")
        self.passcode = passcode

    def is_owner(self, passcode) -> bool:
        if not passcode:
            return False
        ok = hmac.compare_digest(str(passcode).strip().encode(), self.passcode.encode())
        if not ok:
            logger.warning("rejected parent passcode attempt")
        return ok

    def verify(self, passcode) -> tuple[bool, str]:
        if not self.is_owner(passcode):
            return False, "Wrong passcode."
        return True, "Unlocked."
