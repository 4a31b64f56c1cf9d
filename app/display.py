"""Rich terminal rendering for identities, preferences and alerts."""

from datetime import date
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from modules.auth import Identity
from modules.preferences import WEEKDAYS, WEEKENDS, Preferences, Weekday
from modules.viewmodels import AuthenticationStatus

console = Console()

_LOGIN_TYPE_LABELS = {
    "email": "Email",
    "guest": "Guest",
    "google": "Google",
    "apple": "Apple",
}


def show_status(status: Optional[AuthenticationStatus]) -> None:
    """Print an authentication status as a success line or an alert panel."""
    if status is None:
        return
    if status.is_success:
        console.print(f"[green]{status.title}:[/green] {status.message}")
    else:
        show_alert(status.title, status.message)


def show_alert(title: str, message: str, success: bool = False) -> None:
    console.print(
        Panel(message, title=title, border_style="green" if success else "red", expand=False)
    )


def show_identity(identity: Optional[Identity]) -> None:
    if identity is None:
        console.print("[dim]Not signed in[/dim]")
        return

    table = Table(show_header=False, box=None)
    table.add_row("[bold]User ID[/bold]", identity.id)
    table.add_row("[bold]Email[/bold]", identity.email or "[dim]-[/dim]")
    table.add_row("[bold]Login[/bold]", _LOGIN_TYPE_LABELS[identity.login_type.value])
    table.add_row("[bold]Anonymous[/bold]", "yes" if identity.is_anonymous else "no")
    console.print(table)


def _fmt(value) -> str:
    if value is None:
        return "[dim]-[/dim]"
    if hasattr(value, "strftime"):
        return value.strftime("%H:%M")
    return str(value)


def show_preferences(preferences: Preferences, today: Optional[date] = None) -> None:
    """Print the schedule per weekday, then the challenge settings."""
    today = today or date.today()

    schedule = Table(title="Wake-up schedule")
    schedule.add_column("Day")
    schedule.add_column("Override")
    schedule.add_column("Effective")
    for weekday in (*WEEKDAYS, *WEEKENDS):
        # Next date (from today) falling on this weekday
        offset = (list(Weekday).index(weekday) - list(Weekday).index(Weekday.from_date(today))) % 7
        day = date.fromordinal(today.toordinal() + offset)
        schedule.add_row(
            weekday.value,
            _fmt(preferences.wake_up_times.get(weekday)),
            _fmt(preferences.effective_wake_up_time(day)),
        )
    console.print(schedule)

    settings = Table(show_header=False, box=None)
    settings.add_row("Everyday", _fmt(preferences.everyday_time))
    settings.add_row("Weekdays", _fmt(preferences.weekdays_time))
    settings.add_row("Weekends", _fmt(preferences.weekends_time))
    settings.add_row(
        "Wake-up method",
        _fmt(preferences.wake_up_method.value if preferences.wake_up_method else None),
    )
    settings.add_row("Step goal", _fmt(preferences.step_goal))
    location = preferences.location
    settings.add_row(
        "Location",
        f"{location.name} ({location.latitude:.5f}, {location.longitude:.5f}, "
        f"{location.geofence_radius:.0f} m)" if location else _fmt(None),
    )
    grace = preferences.grace_period
    settings.add_row(
        "Grace period",
        f"{int(grace.total_seconds() // 60)} min" if grace is not None else _fmt(None),
    )
    settings.add_row(
        "Motivation",
        _fmt(preferences.motivation_method.value if preferences.motivation_method else None),
    )
    console.print(settings)
