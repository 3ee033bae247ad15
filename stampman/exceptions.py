"""Stampman exceptions."""


class StampmanError(Exception):
    """
    Structured exception for stamp, claim code and coupon operations.

    Every rejection carries a stable code and a user-facing message.
    Only TRANSIENT_STORE_ERROR is retryable; all other codes are policy
    rejections and retrying them with the same inputs yields the same answer.

    Usage:
        try:
            RedemptionService.redeem("SUMMER-7F2K", member.pk)
        except StampmanError as e:
            if e.code == "ALREADY_REDEEMED":
                show_message(e.message)
    """

    _default_messages = {
        # Redemption rejections
        "CODE_NOT_FOUND": "This stamp code does not exist.",
        "CODE_EXPIRED": "This stamp code has expired.",
        "CODE_EXHAUSTED": "This stamp code has been fully used.",
        "ALREADY_REDEEMED": "You have already used this stamp code.",
        "DUPLICATE_STAMP_FOR_EVENT": "You already have a stamp for this event.",
        "CARD_FULL": "Your stamp card is full. Claim your coupon first.",
        # Coupon issuance rejections
        "NO_ACTIVE_CARD": "No active stamp card found.",
        "CARD_NOT_FULL": "Collect all stamps on your card to receive a coupon.",
        "ALREADY_ISSUED": "A coupon has already been issued for this card.",
        # Lookups and input validation
        "MEMBER_NOT_FOUND": "Member not found.",
        "INVALID_PHONE": "Invalid phone number.",
        "EVENT_NOT_FOUND": "Event not found.",
        "CARD_NOT_FOUND": "Stamp card not found.",
        "ENTRY_NOT_FOUND": "Stamp not found.",
        "COUPON_NOT_FOUND": "Coupon not found.",
        "INVALID_STAMP_SOURCE": "A stamp needs either an event or an admin note.",
        "INVALID_MAX_USES": "Maximum uses must be at least 1.",
        "INVALID_EXPIRY": "Invalid expiry option.",
        "DUPLICATE_CLAIM_CODE": "This stamp code is already in use.",
        "COUPON_CODE_COLLISION": "Generated coupon code already exists.",
        # Infrastructure
        "TRANSIENT_STORE_ERROR": "Something went wrong, please try again.",
    }

    RETRYABLE_CODES = frozenset({"TRANSIENT_STORE_ERROR"})

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    @property
    def retryable(self) -> bool:
        return self.code in self.RETRYABLE_CODES

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }
