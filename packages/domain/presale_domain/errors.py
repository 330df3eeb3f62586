"""Exception hierarchy for presale round operations.

Every rejected operation raises one of these before any state is written, so
callers can catch PresaleError and resubmit without inspecting the round.

Taxonomy:
- AuthorizationError: administrative call from someone other than the owner
- AdmissionError: a deposit the round refuses to accept
- SequencingError: an operation that is no longer valid in the round's state
- TransferError: an external asset transfer reported failure
"""


class PresaleError(Exception):
    """Base class for all presale round errors."""
    pass


class AuthorizationError(PresaleError):
    """Raised when a non-owner calls an owner-only operation."""

    def __init__(self, caller):
        super().__init__(f"Ownable: caller is not the owner ({caller})")
        self.caller = caller


# =============================================================================
# Admission
# =============================================================================

class AdmissionError(PresaleError):
    """Raised when a deposit is rejected."""
    pass


class RoundClosedError(AdmissionError):
    def __init__(self):
        super().__init__("Presale: Round closed")


class GoalReachedError(AdmissionError):
    def __init__(self):
        super().__init__("Presale: Round closed, goal reached")


class InvalidInviteError(AdmissionError):
    def __init__(self, code_hash: str):
        super().__init__(f"Presale: Invalid invite code ({code_hash})")
        self.code_hash = code_hash


class InviteAlreadyUsedError(AdmissionError):
    """Raised when an invite bound to one wallet is presented for another."""

    def __init__(self, code_hash: str, bound_to: str):
        super().__init__(
            "Presale: You can only invest with one wallet per invite code "
            f"(already bound to {bound_to})"
        )
        self.code_hash = code_hash
        self.bound_to = bound_to


class InvestmentLimitError(AdmissionError):
    def __init__(self, investor: str):
        super().__init__(f"Presale: You have invest up to your limit ({investor})")
        self.investor = investor


class MinimumInvestmentError(AdmissionError):
    def __init__(self, amount: int, minimum: int):
        super().__init__(
            f"Presale: Can not invest less than minimum amount "
            f"(total would be {amount}, minimum {minimum})"
        )
        self.amount = amount
        self.minimum = minimum


# =============================================================================
# Sequencing
# =============================================================================

class SequencingError(PresaleError):
    """Raised when an operation is invalid in the round's current state."""
    pass


class RoundAlreadyClosedError(SequencingError):
    def __init__(self):
        super().__init__("Presale: Round already closed")


class SettlementTokenAlreadyBoundError(SequencingError):
    def __init__(self, token: str):
        super().__init__(f"Presale: Settlement token already bound ({token})")
        self.token = token


# =============================================================================
# External transfers
# =============================================================================

class TransferError(PresaleError):
    """Raised when an asset transfer reports failure."""

    def __init__(self, asset: str, sender: str, recipient: str, amount: int):
        super().__init__(
            f"Transfer of {amount} {asset} from {sender} to {recipient} failed"
        )
        self.asset = asset
        self.sender = sender
        self.recipient = recipient
        self.amount = amount
