"""Authentication commands."""

from typing import Annotated

import typer

from taskflow_cli.models import RegistrationForm
from taskflow_cli.services.password_service import evaluate_strength
from taskflow_cli.utils.exit_codes import ERROR_INVALID_ARGS
from taskflow_cli.utils.typer_helpers import SuggestingGroup
from taskflow_cli.utils.ui.console import get_console
from taskflow_cli.utils.ui.formatters import (
    format_output,
    format_strength,
    format_success,
)

from .decorators import AppError, command_wrapper, get_app, unwrap

app = typer.Typer(cls=SuggestingGroup, help="Authentication commands")
console = get_console()


@app.command("register")
@command_wrapper(auth_required=False)
async def register(
    ctx: typer.Context,
    first_name: Annotated[str, typer.Option("--first-name", prompt=True)],
    last_name: Annotated[str, typer.Option("--last-name", prompt=True)],
    email: Annotated[str, typer.Option("--email", prompt=True)],
    password: Annotated[str, typer.Option("--password", prompt=True, hide_input=True)],
    confirm_password: Annotated[
        str,
        typer.Option("--confirm-password", prompt="Confirm password", hide_input=True),
    ],
    agree_terms: Annotated[
        bool, typer.Option("--agree-terms", help="Accept the terms of service")
    ] = False,
) -> None:
    """Create an account and log into it."""
    strength = evaluate_strength(password)
    if not strength.is_acceptable:
        format_strength(strength)
        raise AppError("Password is too weak", ERROR_INVALID_ARGS)

    taskflow = get_app(ctx)
    form = RegistrationForm(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        confirm_password=confirm_password,
        agree_terms=agree_terms,
    )
    result = await taskflow.credentials.register(form)
    if not result.success and result.error is not None:
        for problem in result.error.details:
            console.print(f"  [dim]•[/dim] {problem}")
    identity = unwrap(result)

    taskflow.refresh_scope()
    format_success(f"Account created successfully! Welcome, {identity.first_name}!")


@app.command("login")
@command_wrapper(auth_required=False)
async def login(
    ctx: typer.Context,
    email: Annotated[str, typer.Option("--email", prompt=True)],
    password: Annotated[str, typer.Option("--password", prompt=True, hide_input=True)],
    remember: Annotated[
        bool, typer.Option("--remember", "-r", help="Stay logged in for 30 days")
    ] = False,
) -> None:
    """Log in with email and password."""
    taskflow = get_app(ctx)
    identity = unwrap(await taskflow.credentials.login(email, password, remember))
    taskflow.refresh_scope()
    format_success(f"Welcome back, {identity.first_name}!")


@app.command("logout")
@command_wrapper(auth_required=False)
def logout(ctx: typer.Context) -> None:
    """Log out and forget the remembered session."""
    taskflow = get_app(ctx)
    if not taskflow.credentials.logout():
        raise AppError("Failed to log out")
    taskflow.refresh_scope()
    format_success("Logged out successfully")


@app.command("whoami")
@command_wrapper
def whoami(
    ctx: typer.Context,
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "table",
) -> None:
    """Show the logged-in user."""
    identity = get_app(ctx).sessions.current
    format_output(
        {
            "name": identity.display_name,
            "email": identity.email,
            "id": identity.id,
            "theme": identity.preferences.theme.value,
        },
        output,
    )


@app.command("strength")
@command_wrapper(auth_required=False)
def strength(
    password: Annotated[str, typer.Option("--password", prompt=True, hide_input=True)],
) -> None:
    """Score a password against the registration rules."""
    result = evaluate_strength(password)
    format_strength(result)
    if result.is_acceptable:
        console.print("[green]Acceptable for registration[/green]")
    else:
        console.print("[yellow]Not acceptable for registration[/yellow]")
