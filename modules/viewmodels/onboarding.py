"""
Onboarding flow.

Walks the user through wake-up time, wake-up method, the method's
configuration, grace period and motivation, editing a draft Preferences
value that is committed to the preference store at the end.
"""

import logging
from enum import Enum
from typing import Optional

from modules.preferences import Preferences, PreferenceStore, WakeUpMethod

from .app_state import AppState

logger = logging.getLogger(__name__)


class OnboardingStep(str, Enum):
    WAKE_UP_TIME = "wakeUpTime"
    WAKE_UP_METHOD = "wakeUpMethod"
    STEPS_CONFIG = "stepsConfig"
    LOCATION_CONFIG = "locationConfig"
    GRACE_PERIOD = "gracePeriod"
    MOTIVATION_METHOD = "motivationMethod"
    CONFIRMATION = "confirmation"


class OnboardingCoordinator:
    """Step machine over a draft Preferences value."""

    def __init__(
        self,
        app_state: AppState,
        preferences: PreferenceStore,
        draft: Optional[Preferences] = None,
    ):
        self._app_state = app_state
        self._store = preferences
        self.preferences = draft or Preferences()
        self.current_step = OnboardingStep.WAKE_UP_TIME
        self.navigation_path: list[OnboardingStep] = []

    def _method_config_step(self) -> OnboardingStep:
        if self.preferences.wake_up_method == WakeUpMethod.STEPS:
            return OnboardingStep.STEPS_CONFIG
        return OnboardingStep.LOCATION_CONFIG

    def next_step(self) -> OnboardingStep:
        step = self.current_step
        if step == OnboardingStep.CONFIRMATION:
            return step

        if step == OnboardingStep.WAKE_UP_TIME:
            following = OnboardingStep.WAKE_UP_METHOD
        elif step == OnboardingStep.WAKE_UP_METHOD:
            following = self._method_config_step()
        elif step in (OnboardingStep.STEPS_CONFIG, OnboardingStep.LOCATION_CONFIG):
            following = OnboardingStep.GRACE_PERIOD
        elif step == OnboardingStep.GRACE_PERIOD:
            following = OnboardingStep.MOTIVATION_METHOD
        else:
            following = OnboardingStep.CONFIRMATION

        self.current_step = following
        self.navigation_path.append(following)
        return following

    def previous_step(self) -> OnboardingStep:
        if not self.navigation_path:
            return self.current_step
        self.navigation_path.pop()

        step = self.current_step
        if step == OnboardingStep.WAKE_UP_METHOD:
            self.current_step = OnboardingStep.WAKE_UP_TIME
        elif step in (OnboardingStep.STEPS_CONFIG, OnboardingStep.LOCATION_CONFIG):
            self.current_step = OnboardingStep.WAKE_UP_METHOD
        elif step == OnboardingStep.GRACE_PERIOD:
            self.current_step = self._method_config_step()
        elif step == OnboardingStep.MOTIVATION_METHOD:
            self.current_step = OnboardingStep.GRACE_PERIOD
        elif step == OnboardingStep.CONFIRMATION:
            self.current_step = OnboardingStep.MOTIVATION_METHOD
        return self.current_step

    def can_proceed(self) -> bool:
        prefs = self.preferences
        step = self.current_step
        if step == OnboardingStep.WAKE_UP_TIME:
            return prefs.has_any_wake_up_time()
        if step == OnboardingStep.WAKE_UP_METHOD:
            return prefs.wake_up_method is not None
        if step == OnboardingStep.STEPS_CONFIG:
            return prefs.step_goal is not None
        if step == OnboardingStep.LOCATION_CONFIG:
            return prefs.location is not None
        if step == OnboardingStep.GRACE_PERIOD:
            return prefs.grace_period is not None
        if step == OnboardingStep.MOTIVATION_METHOD:
            return prefs.motivation_method is not None
        return True

    def complete_onboarding(self) -> None:
        """Commit the draft to the preference store and mark onboarding done."""
        self._store.replace(self.preferences)
        self._store.flush()
        self._app_state.has_completed_onboarding = True
        logger.info("Onboarding completed")
