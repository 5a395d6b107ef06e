"""
Console prompts.

Keeps raw ``input()`` handling out of the menu so the menu can be driven by
scripted answers in tests.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Callable, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)

YES_ANSWERS = ("y", "yes", "s", "si")
NO_ANSWERS = ("n", "no")

class Prompter:
    """
    Collects typed values from the operator.

    Every ``ask_*`` method re-prompts until the answer parses. With
    ``optional=True`` an empty answer returns None, which the update screens
    use for "keep the current value".
    """

    def __init__(self, input_func: Callable[[str], str] = input, output: Callable[[str], None] = print):
        self._input = input_func
        self.out = output

    def _read(self, prompt: str, current=None) -> str:
        if current is not None:
            return self._input(f"{prompt} (current: {current}, Enter to keep): ").strip()
        return self._input(f"{prompt}: ").strip()

    def ask_yes_no(self, prompt: str) -> bool:
        while True:
            response = self._input(f"{prompt} (y/n): ").strip().lower()
            if response in YES_ANSWERS:
                return True
            if response in NO_ANSWERS:
                return False
            self.out("Please enter 'y' or 'n'")

    def ask_text(self, prompt: str, optional: bool = False, current=None) -> Optional[str]:
        while True:
            value = self._read(prompt, current)
            if value:
                return value
            if optional:
                return None
            self.out("Input is required. Please enter a value.")

    def ask_int(self, prompt: str, optional: bool = False, min_value: Optional[int] = None) -> Optional[int]:
        while True:
            value = self._read(prompt)
            if not value and optional:
                return None
            try:
                number = int(value)
            except ValueError:
                self.out("Please enter a valid integer")
                continue
            if min_value is not None and number < min_value:
                self.out(f"Value must be at least {min_value}")
                continue
            return number

    def ask_decimal(self, prompt: str, optional: bool = False, current=None) -> Optional[Decimal]:
        while True:
            value = self._read(prompt, current)
            if not value and optional:
                return None
            try:
                return Decimal(value.replace(",", "."))
            except InvalidOperation:
                self.out("Please enter a valid amount (e.g. 125.50)")

    def ask_date(self, prompt: str, optional: bool = False, current=None, default: Optional[date] = None) -> Optional[date]:
        label = f"{prompt} [YYYY-MM-DD]"
        if default is not None and current is None:
            label = f"{label} (default: {default.isoformat()})"
        while True:
            value = self._read(label, current)
            if not value:
                if default is not None:
                    return default
                if optional:
                    return None
                self.out("Input is required. Please enter a value.")
                continue
            try:
                return date.fromisoformat(value)
            except ValueError:
                self.out("Please enter a valid date as YYYY-MM-DD")

    def ask_enum(self, prompt: str, enum_cls: Type[E], optional: bool = False, current=None, default: Optional[E] = None) -> Optional[E]:
        members = list(enum_cls)
        self.out(f"{prompt}: " + ", ".join(f"{i}. {m.value}" for i, m in enumerate(members, 1)))
        label = prompt if default is None else f"{prompt} (default: {default.value})"
        while True:
            value = self._read(label, current.value if current is not None else None)
            if not value:
                if default is not None:
                    return default
                if optional:
                    return None
                self.out("Input is required. Please enter a value.")
                continue
            if value.isdigit() and 1 <= int(value) <= len(members):
                return members[int(value) - 1]
            for member in members:
                if member.value.lower() == value.lower():
                    return member
            self.out(f"Invalid choice. Please select from: {', '.join(m.value for m in members)}")
