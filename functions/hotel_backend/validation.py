"""
Field validation for contact form submissions.

Checks run in a fixed order (presence, name, email, phone, message) and the
first failing check wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from typing import Callable, Optional, Union

NAME_MIN_LENGTH = 2
PHONE_MIN_DIGITS = 10
PHONE_MAX_DIGITS = 15
MESSAGE_MIN_LENGTH = 10
MESSAGE_MAX_LENGTH = 1000

NAME_PATTERN = re.compile(r"[A-Za-z ]+")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_CHARS_PATTERN = re.compile(r"[0-9+\-\s()]+")
NON_DIGITS = re.compile(r"[^0-9]")


@dataclass(frozen=True)
class ContactSubmission:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None

    def normalized(self) -> "ContactSubmission":
        """Return a copy with surrounding whitespace trimmed from every field."""
        return replace(
            self,
            **{f.name: (getattr(self, f.name) or "").strip() for f in fields(self)},
        )


@dataclass(frozen=True)
class Valid:
    submission: ContactSubmission

    ok = True


@dataclass(frozen=True)
class Invalid:
    field: str
    reason: str

    ok = False


ValidationResult = Union[Valid, Invalid]
Check = Callable[[ContactSubmission], Optional[Invalid]]


def check_required(submission: ContactSubmission) -> Optional[Invalid]:
    for f in fields(submission):
        if not getattr(submission, f.name):
            return Invalid(f.name, "Please provide all required fields")
    return None


def check_name(submission: ContactSubmission) -> Optional[Invalid]:
    name = submission.name.strip()
    if len(name) < NAME_MIN_LENGTH:
        return Invalid("name", "Name must be at least 2 characters long")
    if not NAME_PATTERN.fullmatch(name):
        return Invalid("name", "Name can only contain letters and spaces")
    return None


def check_email(submission: ContactSubmission) -> Optional[Invalid]:
    if not EMAIL_PATTERN.fullmatch(submission.email):
        return Invalid("email", "Please provide a valid email address")
    return None


def check_phone(submission: ContactSubmission) -> Optional[Invalid]:
    phone = submission.phone
    digits = NON_DIGITS.sub("", phone)
    if len(digits) < PHONE_MIN_DIGITS:
        return Invalid("phone", "Phone number must be at least 10 digits")
    if len(digits) > PHONE_MAX_DIGITS:
        return Invalid("phone", "Phone number cannot exceed 15 digits")
    if not PHONE_CHARS_PATTERN.fullmatch(phone):
        return Invalid("phone", "Please enter a valid phone number")
    return None


def check_message(submission: ContactSubmission) -> Optional[Invalid]:
    length = len(submission.message.strip())
    if length < MESSAGE_MIN_LENGTH:
        return Invalid("message", "Message must be at least 10 characters long")
    if length > MESSAGE_MAX_LENGTH:
        return Invalid("message", "Message cannot exceed 1000 characters")
    return None


CHECKS: tuple[Check, ...] = (
    check_required,
    check_name,
    check_email,
    check_phone,
    check_message,
)


def validate_submission(
    submission: ContactSubmission, checks: tuple[Check, ...] = CHECKS
) -> ValidationResult:
    for check in checks:
        failure = check(submission)
        if failure is not None:
            return failure
    return Valid(submission.normalized())
