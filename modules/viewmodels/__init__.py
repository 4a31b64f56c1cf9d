"""
View-models module.

Screen-level state for the presentation layer: form fields, loading
flags and title/message statuses derived from auth and preference calls.
"""

from .status import AuthenticationStatus
from .base import MIN_PASSWORD_LENGTH, ViewModel, validate_credentials
from .auth import (
    AccountConversionViewModel,
    SignInViewModel,
    SignUpViewModel,
    WelcomeViewModel,
)
from .settings import SettingsViewModel
from .app_state import AppState
from .onboarding import OnboardingCoordinator, OnboardingStep

__all__ = [
    "AuthenticationStatus",
    "MIN_PASSWORD_LENGTH",
    "ViewModel",
    "validate_credentials",
    "AccountConversionViewModel",
    "SignInViewModel",
    "SignUpViewModel",
    "WelcomeViewModel",
    "SettingsViewModel",
    "AppState",
    "OnboardingCoordinator",
    "OnboardingStep",
]
