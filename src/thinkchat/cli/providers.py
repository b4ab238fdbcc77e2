"""Factory functions for the CLI.

Centralizes creation of settings, the session store and the model gateway
from environment variables. Hides configuration details from command
implementations.
"""

from pathlib import Path

import typer
from rich.console import Console

from ..config import Settings
from ..llm import ModelGateway, create_image_provider, create_llm_provider
from ..sessions import SessionStore, create_session_storage

# Errors go to stderr so streamed replies on stdout stay clean
_console = Console(stderr=True)


def get_settings() -> Settings:
    """Read runtime settings from the environment.

    See Settings.from_env for the variables consulted.
    """
    return Settings.from_env()


def get_store(
    settings: Settings,
    storage: str | None = None,
    data_dir: Path | None = None,
    console: Console | None = None,
) -> SessionStore:
    """Create a session store over the configured storage backend.

    Args:
        settings: Runtime settings
        storage: Backend override (json, sqlite, memory)
        data_dir: Data directory override
        console: Optional Rich console for output

    Returns:
        A SessionStore that still needs load()

    Raises:
        typer.Exit: If the backend name is not supported
    """
    con = console or _console
    backend = (storage or settings.storage).lower()
    directory = (data_dir or settings.data_dir).expanduser()

    config: dict = {}
    if backend == "json":
        config["path"] = directory
    elif backend == "sqlite":
        config["path"] = directory / "history.db"

    try:
        return SessionStore(create_session_storage(backend, **config))
    except ValueError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


def get_gateway(settings: Settings, console: Console | None = None) -> ModelGateway:
    """Create the model gateway for the configured providers.

    A missing API key only produces a warning here; the first remote call
    then fails and the turn settles with an apology.

    Environment variables:
        THINKCHAT_PROVIDER: Text provider (gemini, openai; default: gemini)
        THINKCHAT_IMAGE_PROVIDER: Image provider (gemini, openai, pollinations)
        GEMINI_API_KEY / API_KEY, OPENAI_API_KEY: Provider credentials
        THINKCHAT_MODEL, THINKCHAT_IMAGE_MODEL: Model overrides
    """
    con = console or _console

    text_config: dict = {"api_key": settings.api_key_for(settings.provider)}
    if settings.model:
        text_config["model"] = settings.model

    image_config: dict = {"api_key": settings.api_key_for(settings.image_provider)}
    if settings.image_model:
        image_config["model"] = settings.image_model

    try:
        text_provider = create_llm_provider(settings.provider, **text_config)
        image_provider = create_image_provider(settings.image_provider, **image_config)
    except ValueError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    return ModelGateway(text_provider, image_provider)
