"""codetrack - Hourly one-line summaries of your coding activity, committed to GitHub."""

import asyncio
import logging
from pathlib import Path

import click
import uvicorn

from .config import STORES, TrackerConfig, get_config_paths, load_config
from .controller import SetupError, TrackingController
from .notify import FanoutNotifier, TerminalNotifier
from .server import StatusHub, create_app
from .sources import WorkspaceWatcher
from .store import DirectoryLogStore, GitHubLogStore, LogStore
from .summarizer import GeminiSummarizer, get_prompt_template

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path.home() / ".codetrack"


def build_log_store(tracker: TrackerConfig, github_token: str | None) -> LogStore:
    """Create the configured log store."""
    if tracker.store == "directory":
        root = Path(tracker.store_path).expanduser() if tracker.store_path else DEFAULT_STORE_PATH
        return DirectoryLogStore(root)
    return GitHubLogStore(token=github_token or "")


async def run_headless(controller: TrackingController, watcher: WorkspaceWatcher | None) -> None:
    """Run tracking without the HTTP server until cancelled."""
    controller.start()
    try:
        if watcher is not None:
            await watcher.run()
        else:
            await asyncio.Event().wait()
    finally:
        controller.shutdown()


@click.command()
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Extra TOML config file (overrides ~/.config/codetrack/config.toml and .codetrack.toml)",
)
@click.option(
    "--watch", "-w",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Workspace directory to watch for edits",
)
@click.option("--host", type=str, help="Host to bind to (default: 127.0.0.1)")
@click.option("--port", "-p", type=int, help="Port to run the server on (default: 8766)")
@click.option("--no-server", is_flag=True, help="Track without starting the status server")
@click.option("--store", type=click.Choice(STORES), help="Where to commit summaries (default: github)")
@click.option(
    "--store-path",
    type=click.Path(file_okay=False, path_type=Path),
    help="Root directory for --store directory (default: ~/.codetrack)",
)
@click.option("--idle-timeout", type=float, help="Seconds of inactivity before tracking pauses")
@click.option("--commit-interval", type=float, help="Seconds between commits")
@click.option(
    "--github-token",
    envvar="GITHUB_TOKEN",
    help="GitHub personal access token with repo scope [env: GITHUB_TOKEN]",
)
@click.option(
    "--gemini-api-key",
    envvar="GEMINI_API_KEY",
    help="Google Gemini API key [env: GEMINI_API_KEY]",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(
    config_path: Path | None,
    watch: Path | None,
    host: str | None,
    port: int | None,
    no_server: bool,
    store: str | None,
    store_path: Path | None,
    idle_timeout: float | None,
    commit_interval: float | None,
    github_token: str | None,
    gemini_api_key: str | None,
    debug: bool,
) -> None:
    """Track coding activity and commit an hourly summary.

    Edits in the watched workspace (or reported to POST /activity by an
    editor integration) are buffered. Every commit interval the buffer is
    summarized in one line by Gemini and committed to a private
    "code-tracking" repository. Tracking pauses after a period of
    inactivity and resumes on the next edit.
    """
    paths = get_config_paths()
    if config_path is not None:
        paths.append(config_path)
    config = load_config(paths)
    tracker, serve = config.tracker, config.serve

    # CLI arguments take precedence over config files
    if watch is not None:
        serve.watch = str(watch)
    if host is not None:
        serve.host = host
    if port is not None:
        serve.port = port
    serve.no_server = no_server or serve.no_server
    serve.debug = debug or serve.debug
    if store is not None:
        tracker.store = store
    if store_path is not None:
        tracker.store_path = str(store_path)
    if idle_timeout is not None:
        tracker.idle_timeout = idle_timeout
    if commit_interval is not None:
        tracker.commit_interval = commit_interval

    logging.basicConfig(
        level=logging.DEBUG if serve.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if tracker.store == "github" and not github_token:
        click.echo("GitHub token is required! Set GITHUB_TOKEN or pass --github-token.", err=True)
        raise SystemExit(1)
    if not gemini_api_key:
        click.echo("Gemini API key is required! Set GEMINI_API_KEY or pass --gemini-api-key.", err=True)
        raise SystemExit(1)

    prompt_file = Path(tracker.summary_prompt_file) if tracker.summary_prompt_file else None
    hub = StatusHub()
    notifier = FanoutNotifier([TerminalNotifier(), hub])
    log_store = build_log_store(tracker, github_token)

    try:
        controller = TrackingController(
            notifier=notifier,
            summarizer=GeminiSummarizer(api_key=gemini_api_key, model=tracker.gemini_model),
            log_store=log_store,
            config=tracker,
            prompt_template=get_prompt_template(tracker.summary_prompt, prompt_file),
        )
        asyncio.run(controller.setup())
    except SetupError as e:
        click.echo(f"Activation failed: {e}", err=True)
        raise SystemExit(1)

    watcher = None
    if serve.watch:
        ignore = (log_store.root.resolve(),) if isinstance(log_store, DirectoryLogStore) else ()
        watcher = WorkspaceWatcher(Path(serve.watch).expanduser(), controller.on_activity, ignore_paths=ignore)
        click.echo(f"Watching: {watcher.root}")

    if serve.no_server:
        try:
            asyncio.run(run_headless(controller, watcher))
        except KeyboardInterrupt:
            click.echo("Stopped tracking")
        return

    click.echo(f"Status at http://{serve.host}:{serve.port}")
    uvicorn.run(
        create_app(controller, hub=hub, watcher=watcher),
        host=serve.host,
        port=serve.port,
        log_level="debug" if serve.debug else "warning",
    )


if __name__ == "__main__":
    main()
