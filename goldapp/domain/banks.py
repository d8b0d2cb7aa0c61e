"""Bank account selection for an order session"""

from typing import List, Optional

from goldapp.domain.exceptions import InputError, ValidationErrorCode
from goldapp.domain.models import BankAccount


class BankSelector:
    """Holds the user's saved accounts and the one chosen for this order"""

    def __init__(self, banks: Optional[List[BankAccount]] = None):
        self.banks: List[BankAccount] = []
        self.selected: Optional[BankAccount] = None
        if banks:
            self.load(banks)

    def load(self, banks: List[BankAccount]) -> None:
        """Replace the list, keeping the current selection when it still exists"""
        previous_id = self.selected.id if self.selected else None
        self.banks = list(banks)
        self.selected = next((b for b in self.banks if b.id == previous_id), None)
        if self.selected is None and self.banks:
            self.selected = self.banks[0]

    def select(self, bank_id: str) -> BankAccount:
        for bank in self.banks:
            if bank.id == bank_id:
                self.selected = bank
                return bank
        raise InputError(
            ValidationErrorCode.NO_BANK_SELECTED,
            f"Bank account {bank_id} is not linked to your profile. Add it under bank accounts first.",
        )
