"""
Field-specific validators built on the async field controller.

- otp: fixed-length one-time codes
- password: requirement rules plus a strength meter
- text: free text checked by an external validator
"""

from .otp import OtpFieldValidator, build_otp_rules
from .password import (
    PasswordFieldValidator,
    build_password_rules,
    password_complexity,
    password_strength,
    zxcvbn_strength,
)
from .text import TextFieldValidator

__all__ = [
    "OtpFieldValidator",
    "build_otp_rules",
    "PasswordFieldValidator",
    "build_password_rules",
    "password_complexity",
    "password_strength",
    "zxcvbn_strength",
    "TextFieldValidator",
]
