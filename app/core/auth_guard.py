"""Session guard for protected dashboard pages.

The guard never looks up the session itself: the caller passes the current
``AuthState`` every time it changes, and the guard decides whether to show a
loading placeholder, render the protected content or send the visitor to the
login screen.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

LOGIN_PATH = "/login"


class GuardStatus(str, Enum):
    """Derived authentication status."""

    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AuthState(BaseModel):
    """Client-held auth state as resolved by the auth provider."""

    model_config = ConfigDict(frozen=True)

    user: Any | None = None
    is_loading: bool = True

    @property
    def status(self) -> GuardStatus:
        """Map the raw state onto a guard status."""
        if self.is_loading:
            return GuardStatus.LOADING
        if self.user is None:
            return GuardStatus.UNAUTHENTICATED
        return GuardStatus.AUTHENTICATED


class GuardDecision(BaseModel):
    """What the page should do for a given state."""

    model_config = ConfigDict(frozen=True)

    status: GuardStatus
    render_content: bool
    show_placeholder: bool
    redirect_to: str | None = None


def decide(state: AuthState, login_path: str = LOGIN_PATH) -> GuardDecision:
    """Pure mapping from state to decision, without any navigation bookkeeping."""
    status = state.status
    return GuardDecision(
        status=status,
        render_content=status is GuardStatus.AUTHENTICATED,
        show_placeholder=status is GuardStatus.LOADING,
        redirect_to=login_path if status is GuardStatus.UNAUTHENTICATED else None,
    )


class AuthGuard:
    """
    Stateful wrapper around ``decide`` that fires navigation once per transition.

    Re-evaluating an unauthenticated state does not navigate again; leaving the
    state and coming back does.
    """

    def __init__(
        self,
        navigate: Callable[[str], None],
        login_path: str = LOGIN_PATH,
    ):
        """Initialize the guard with a navigation callback."""
        self.navigate = navigate
        self.login_path = login_path
        self._last_status: GuardStatus = GuardStatus.LOADING

    @property
    def status(self) -> GuardStatus:
        """Status seen on the last evaluation."""
        return self._last_status

    def evaluate(self, state: AuthState) -> GuardDecision:
        """
        Evaluate a state change and navigate if it enters the unauthenticated state.

        Args:
            state: Current auth state

        Returns:
            Decision for rendering
        """
        decision = decide(state, self.login_path)
        entering_unauthenticated = (
            decision.status is GuardStatus.UNAUTHENTICATED
            and self._last_status is not GuardStatus.UNAUTHENTICATED
        )
        self._last_status = decision.status

        if entering_unauthenticated and decision.redirect_to:
            self.navigate(decision.redirect_to)

        return decision
