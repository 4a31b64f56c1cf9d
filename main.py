"""
ColdWater - alarm app core with a terminal front end.

Signs users in (email, guest, Google, Apple), upgrades guest accounts to
permanent ones, and edits the wake-up preferences that drive the alarm.
Preferences are kept locally and optionally mirrored to Supabase.
"""

import argparse
import asyncio
import sys
from datetime import time, timedelta

from rich.prompt import Prompt

from app.dependencies import ServiceContainer
from app.display import console, show_alert, show_identity, show_preferences, show_status
from app.presenters import TerminalApplePresenter
from modules.auth import ConversionMethod
from modules.preferences import Location, MotivationMethod, WakeUpMethod, Weekday
from modules.viewmodels import (
    AccountConversionViewModel,
    OnboardingCoordinator,
    OnboardingStep,
    SettingsViewModel,
    SignInViewModel,
    SignUpViewModel,
    WelcomeViewModel,
)
from shared.config import get_settings
from shared.exceptions import ColdWaterError
from shared.logging_config import configure_logging


def parse_time(value: str) -> time:
    """Parse HH:MM for argparse."""
    try:
        return time.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid time (expected HH:MM): {value!r}")


def _ask(value: str | None, prompt: str, password: bool = False) -> str:
    if value:
        return value
    return Prompt.ask(prompt, console=console, password=password)


# -----------------------------------------------------------------------------
# Account commands
# -----------------------------------------------------------------------------


async def cmd_login(container: ServiceContainer, args: argparse.Namespace) -> int:
    vm = SignInViewModel(container.auth)
    vm.email = _ask(args.email, "Email")
    vm.password = _ask(args.password, "Password", password=True)
    identity = await vm.login()
    show_status(vm.status)
    show_identity(identity)
    return 0 if identity else 1


async def cmd_signup(container: ServiceContainer, args: argparse.Namespace) -> int:
    vm = SignUpViewModel(container.auth)
    vm.email = _ask(args.email, "Email")
    vm.password = _ask(args.password, "Password", password=True)
    vm.password_confirmation = _ask(args.confirm, "Confirm password", password=True)
    identity = await vm.sign_up()
    show_status(vm.status)
    show_identity(identity)
    return 0 if identity else 1


async def cmd_welcome(container: ServiceContainer, args: argparse.Namespace) -> int:
    vm = WelcomeViewModel(container.auth)
    if args.command == "guest":
        identity = await vm.continue_as_guest()
    elif args.command == "google":
        identity = await vm.sign_in_with_google()
    else:
        identity = await vm.sign_in_with_apple()
    show_status(vm.status)
    show_identity(identity)
    return 0 if identity else 1


async def cmd_convert(container: ServiceContainer, args: argparse.Namespace) -> int:
    vm = AccountConversionViewModel(container.auth, container.session)
    method = ConversionMethod(args.method)
    if method == ConversionMethod.EMAIL:
        vm.email = _ask(args.email, "Email")
        vm.password = _ask(args.password, "Password", password=True)
        vm.password_confirmation = _ask(args.confirm, "Confirm password", password=True)
        identity = await vm.convert_account()
    elif method == ConversionMethod.GOOGLE:
        identity = await vm.convert_with_google()
    else:
        identity = await vm.convert_with_apple()
    show_status(vm.status)
    show_identity(identity)
    return 0 if identity else 1


async def cmd_signout(container: ServiceContainer, args: argparse.Namespace) -> int:
    vm = SettingsViewModel(container.auth, container.session)
    if not await vm.sign_out():
        show_alert(vm.alert_title, vm.alert_message)
        return 1
    console.print("[green]Signed out[/green]")
    return 0


async def cmd_delete_account(container: ServiceContainer, args: argparse.Namespace) -> int:
    vm = SettingsViewModel(container.auth, container.session)
    if not args.yes:
        answer = Prompt.ask(
            "Delete your account and all local data?",
            choices=["y", "n"],
            default="n",
            console=console,
        )
        if answer != "y":
            return 1
    ok = await vm.delete_account()
    show_alert(vm.alert_title, vm.alert_message, success=ok)
    return 0 if ok else 1


async def cmd_whoami(container: ServiceContainer, args: argparse.Namespace) -> int:
    session = container.session
    show_identity(session.current)
    if session.current is not None:
        vm = SettingsViewModel(container.auth, session)
        if vm.should_show_anonymous_buttons:
            console.print("[dim]Guest account: run 'convert' to keep your data[/dim]")
    return 0


# -----------------------------------------------------------------------------
# Preference commands
# -----------------------------------------------------------------------------


async def cmd_prefs_show(container: ServiceContainer, args: argparse.Namespace) -> int:
    store = container.preferences
    if store.last_load_error is not None:
        show_alert("Preferences Reset", store.last_load_error.message)
    show_preferences(store.preferences)
    return 0


async def cmd_prefs_set_time(container: ServiceContainer, args: argparse.Namespace) -> int:
    store = container.preferences
    value = None if args.clear else args.time
    if value is None and not args.clear:
        console.print("[red]Error:[/red] Give a time or --clear")
        return 2

    if args.day:
        weekday = Weekday(args.day)
        if value is None:
            store.remove_wake_up_time(weekday)
        else:
            store.set_wake_up_time(weekday, value)
    elif args.scope == "weekdays":
        store.set_weekdays_time(value)
    elif args.scope == "weekends":
        store.set_weekends_time(value)
    else:
        store.set_everyday_time(value)

    show_preferences(store.preferences)
    return 0


async def cmd_prefs_set_steps(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.preferences.set_step_goal(args.steps)
    console.print(f"Step goal set to {args.steps}")
    return 0


async def cmd_prefs_set_motivation(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.preferences.set_motivation_method(MotivationMethod(args.method))
    console.print(f"Motivation set to {args.method}")
    return 0


async def cmd_prefs_set_method(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.preferences.set_wake_up_method(WakeUpMethod(args.method))
    console.print(f"Wake-up method set to {args.method}")
    return 0


async def cmd_prefs_set_grace(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.preferences.set_grace_period(timedelta(minutes=args.minutes))
    console.print(f"Grace period set to {args.minutes} min")
    return 0


async def cmd_prefs_set_location(container: ServiceContainer, args: argparse.Namespace) -> int:
    container.preferences.set_location(
        Location(
            latitude=args.latitude,
            longitude=args.longitude,
            geofence_radius=args.radius,
            name=args.name,
        )
    )
    console.print(f"Location set to {args.name}")
    return 0


async def cmd_prefs_pull(container: ServiceContainer, args: argparse.Namespace) -> int:
    if container.mirror is None:
        console.print("[yellow]Remote sync is disabled[/yellow]")
        return 1
    if await container.preferences.restore_from_mirror():
        show_preferences(container.preferences.preferences)
    else:
        console.print("[dim]No remote preferences found[/dim]")
    return 0


# -----------------------------------------------------------------------------
# Onboarding
# -----------------------------------------------------------------------------


def _ask_step(coordinator: OnboardingCoordinator) -> None:
    """Prompt for the current step's value and put it in the draft."""
    draft = coordinator.preferences
    step = coordinator.current_step

    if step == OnboardingStep.WAKE_UP_TIME:
        draft.everyday_time = parse_time(Prompt.ask("Wake-up time (HH:MM)", console=console))
    elif step == OnboardingStep.WAKE_UP_METHOD:
        draft.wake_up_method = WakeUpMethod(
            Prompt.ask("Wake-up method", choices=[m.value for m in WakeUpMethod], console=console)
        )
    elif step == OnboardingStep.STEPS_CONFIG:
        draft.step_goal = int(Prompt.ask("Step goal", default="100", console=console))
    elif step == OnboardingStep.LOCATION_CONFIG:
        draft.location = Location(
            latitude=float(Prompt.ask("Latitude", console=console)),
            longitude=float(Prompt.ask("Longitude", console=console)),
            geofence_radius=float(Prompt.ask("Radius (m)", default="100", console=console)),
            name=Prompt.ask("Name", console=console),
        )
    elif step == OnboardingStep.GRACE_PERIOD:
        draft.grace_period = timedelta(
            minutes=int(Prompt.ask("Grace period (minutes)", default="5", console=console))
        )
    elif step == OnboardingStep.MOTIVATION_METHOD:
        draft.motivation_method = MotivationMethod(
            Prompt.ask("Motivation", choices=[m.value for m in MotivationMethod], console=console)
        )


async def cmd_onboard(container: ServiceContainer, args: argparse.Namespace) -> int:
    coordinator = OnboardingCoordinator(
        container.app_state, container.preferences, draft=container.preferences.preferences
    )
    while coordinator.current_step != OnboardingStep.CONFIRMATION:
        while not coordinator.can_proceed():
            try:
                _ask_step(coordinator)
            except (ValueError, argparse.ArgumentTypeError) as e:
                console.print(f"[red]Invalid value:[/red] {e}")
        coordinator.next_step()

    show_preferences(coordinator.preferences)
    coordinator.complete_onboarding()
    console.print("[bold green]Onboarding complete[/bold green]")
    return 0


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coldwater",
        description="ColdWater account and wake-up preference tool",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL (e.g. DEBUG)")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in with email and password")
    login.add_argument("--email")
    login.add_argument("--password")
    login.set_defaults(handler=cmd_login)

    signup = commands.add_parser("signup", help="Create an email account")
    signup.add_argument("--email")
    signup.add_argument("--password")
    signup.add_argument("--confirm")
    signup.set_defaults(handler=cmd_signup)

    for name, help_text in (
        ("guest", "Continue as a guest"),
        ("google", "Sign in with Google"),
        ("apple", "Sign in with Apple"),
    ):
        commands.add_parser(name, help=help_text).set_defaults(handler=cmd_welcome)

    convert = commands.add_parser("convert", help="Turn a guest account into a permanent one")
    convert.add_argument(
        "--method", choices=[m.value for m in ConversionMethod], default=ConversionMethod.EMAIL.value
    )
    convert.add_argument("--email")
    convert.add_argument("--password")
    convert.add_argument("--confirm")
    convert.set_defaults(handler=cmd_convert)

    commands.add_parser("signout", help="Sign out and clear local data").set_defaults(
        handler=cmd_signout
    )

    delete = commands.add_parser("delete-account", help="Delete the signed-in account")
    delete.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    delete.set_defaults(handler=cmd_delete_account)

    commands.add_parser("whoami", help="Show the signed-in identity").set_defaults(
        handler=cmd_whoami
    )
    commands.add_parser("onboard", help="Set up wake-up preferences step by step").set_defaults(
        handler=cmd_onboard
    )

    prefs = commands.add_parser("prefs", help="Show or edit wake-up preferences")
    prefs_commands = prefs.add_subparsers(dest="prefs_command", required=True)

    prefs_commands.add_parser("show", help="Show preferences").set_defaults(handler=cmd_prefs_show)

    set_time = prefs_commands.add_parser("set-time", help="Set or clear a wake-up time")
    set_time.add_argument("time", nargs="?", type=parse_time, help="HH:MM")
    target = set_time.add_mutually_exclusive_group()
    target.add_argument("--day", choices=[d.value for d in Weekday])
    target.add_argument(
        "--scope", choices=["everyday", "weekdays", "weekends"], default="everyday"
    )
    set_time.add_argument("--clear", action="store_true")
    set_time.set_defaults(handler=cmd_prefs_set_time)

    set_steps = prefs_commands.add_parser("set-steps", help="Set the step goal")
    set_steps.add_argument("steps", type=int)
    set_steps.set_defaults(handler=cmd_prefs_set_steps)

    set_motivation = prefs_commands.add_parser("set-motivation", help="Set the motivation method")
    set_motivation.add_argument("method", choices=[m.value for m in MotivationMethod])
    set_motivation.set_defaults(handler=cmd_prefs_set_motivation)

    set_method = prefs_commands.add_parser("set-method", help="Set the wake-up method")
    set_method.add_argument("method", choices=[m.value for m in WakeUpMethod])
    set_method.set_defaults(handler=cmd_prefs_set_method)

    set_grace = prefs_commands.add_parser("set-grace", help="Set the grace period")
    set_grace.add_argument("minutes", type=int)
    set_grace.set_defaults(handler=cmd_prefs_set_grace)

    set_location = prefs_commands.add_parser("set-location", help="Set the geofence location")
    set_location.add_argument("latitude", type=float)
    set_location.add_argument("longitude", type=float)
    set_location.add_argument("radius", type=float, help="meters")
    set_location.add_argument("name")
    set_location.set_defaults(handler=cmd_prefs_set_location)

    prefs_commands.add_parser("pull", help="Restore preferences from Supabase").set_defaults(
        handler=cmd_prefs_pull
    )

    return parser


async def main(args: argparse.Namespace, container: ServiceContainer) -> int:
    """Run one command, then persist anything it left pending."""
    try:
        return await args.handler(container, args)
    except ColdWaterError as e:
        show_alert(e.title, e.message)
        return 1
    finally:
        await container.aclose()


def run(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or ("DEBUG" if settings.debug else settings.log_level), console)

    container = ServiceContainer(settings, apple_presenter=TerminalApplePresenter(console))
    sys.exit(asyncio.run(main(args, container)))


if __name__ == "__main__":
    run()
