"""
VibeFlow CLI - Entry point

Runs the library server, manages the account session, and plays the library
through mpv.
"""

import argparse
import getpass
import sys
import time
from pathlib import Path
from typing import Optional

from blessed import Terminal
from blessed.keyboard import Keystroke
from loguru import logger
from rich.table import Table

from vibeflow.core.config import Config, ensure_directories, get_data_dir, get_log_file_path, load_config
from vibeflow.core.output import get_console, log, safe_print, setup_loguru
from vibeflow.domain.library import (
    LibraryClient,
    LibrarySynchronizer,
    NotAuthenticatedError,
    Song,
    VibeFlowError,
    format_duration,
)
from vibeflow.domain.playback import (
    EngineError,
    MpvEngine,
    PlaybackController,
    PlaybackSnapshot,
)

# Engine poll interval for the play loop (10Hz)
POLL_INTERVAL = 0.1
SEEK_STEP = 10.0
VOLUME_STEP = 5

KEY_HELP = (
    "space pause | n next | p previous | ←/→ seek | +/- volume | "
    "l like | d delete | r repeat | s shuffle | q quit"
)


def get_session_path() -> Path:
    """Where the client keeps its session cookie between invocations."""
    return get_data_dir() / "session.json"


def make_client(config: Config) -> LibraryClient:
    client = LibraryClient(config.client.base_url, timeout=config.client.timeout)
    client.load_session(get_session_path())
    return client


def print_songs(songs: list[Song]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Time", justify="right")
    table.add_column("♥", justify="center")
    table.add_column("Source")

    for song in songs:
        table.add_row(
            song.id,
            song.title,
            song.artist,
            format_duration(song.duration),
            "♥" if song.is_favorite else "",
            song.source_type.value,
        )
    get_console().print(table)


# Commands


def cmd_serve(args: argparse.Namespace, config: Config) -> int:
    import uvicorn

    host = args.host or config.server.host
    port = args.port or config.server.port
    log(f"Starting VibeFlow server on http://{host}:{port}", style="green")
    uvicorn.run("web.backend.main:app", host=host, port=port, log_level="info")
    return 0


def cmd_signup(args: argparse.Namespace, config: Config) -> int:
    client = make_client(config)
    password = args.password or getpass.getpass("Password: ")
    user = client.signup(args.email, password, args.name)
    client.save_session(get_session_path())
    safe_print(f"Welcome, {user['displayName']}!", style="green")
    return 0


def cmd_login(args: argparse.Namespace, config: Config) -> int:
    client = make_client(config)
    password = args.password or getpass.getpass("Password: ")
    user = client.login(args.email, password)
    client.save_session(get_session_path())
    safe_print(f"Logged in as {user['displayName']}", style="green")
    return 0


def cmd_logout(args: argparse.Namespace, config: Config) -> int:
    client = make_client(config)
    client.logout()
    get_session_path().unlink(missing_ok=True)
    safe_print("Logged out")
    return 0


def cmd_library(args: argparse.Namespace, config: Config) -> int:
    synchronizer = LibrarySynchronizer(make_client(config))
    songs = synchronizer.refresh_library()
    if args.favorites:
        songs = [song for song in songs if song.is_favorite]
    if not songs:
        safe_print("Library is empty. Try `vibeflow import <youtube-url>`.", style="yellow")
        return 0
    print_songs(songs)
    return 0


def cmd_import(args: argparse.Namespace, config: Config) -> int:
    client = make_client(config)
    safe_print(f"Extracting audio from {args.url} ...", style="dim")
    song = client.extract_youtube(args.url)
    log(f"Imported: {song.artist} - {song.title} ({format_duration(song.duration)})", style="green")
    return 0


def cmd_upload(args: argparse.Namespace, config: Config) -> int:
    path = Path(args.file).expanduser()
    if not path.is_file():
        safe_print(f"No such file: {path}", style="red")
        return 1
    song = make_client(config).upload_song(path, title=args.title, artist=args.artist)
    log(f"Uploaded: {song.artist} - {song.title}", style="green")
    return 0


def cmd_like(args: argparse.Namespace, config: Config) -> int:
    synchronizer = LibrarySynchronizer(make_client(config))
    synchronizer.refresh_library()
    is_favorite = synchronizer.toggle_favorite(args.song_id)
    safe_print("♥ Liked" if is_favorite else "Unliked", style="magenta")
    return 0


def cmd_delete(args: argparse.Namespace, config: Config) -> int:
    synchronizer = LibrarySynchronizer(make_client(config))
    synchronizer.remove_song(args.song_id)
    safe_print(f"Deleted {args.song_id}")
    return 0


def cmd_cookies(args: argparse.Namespace, config: Config) -> int:
    client = make_client(config)
    if args.action == "upload":
        if not args.file:
            safe_print("Usage: vibeflow cookies upload FILE", style="red")
            return 1
        client.upload_youtube_cookies(Path(args.file).expanduser().read_text(encoding="utf-8"))
        safe_print("YouTube cookies saved", style="green")
    elif args.action == "delete":
        client.delete_youtube_cookies()
        safe_print("YouTube cookies deleted")
    else:
        status = "configured" if client.has_youtube_cookies() else "not configured"
        safe_print(f"YouTube cookies: {status}")
    return 0


def cmd_vibe(args: argparse.Namespace, config: Config) -> int:
    client = make_client(config)
    synchronizer = LibrarySynchronizer(client)
    synchronizer.refresh_library()
    result = client.suggest_vibe(args.history)

    safe_print(f"Vibe: {result['mood']}", style="bold magenta")
    safe_print(result["reasoning"], style="dim")
    songs = [s for s in (synchronizer.find(i) for i in result["suggestedSongIds"]) if s]
    if songs:
        print_songs(songs)

    if args.play and songs:
        return run_player(config, synchronizer, mix=songs)
    return 0


def cmd_play(args: argparse.Namespace, config: Config) -> int:
    synchronizer = LibrarySynchronizer(make_client(config))
    library = synchronizer.refresh_library()
    if not library:
        safe_print("Library is empty.", style="yellow")
        return 0

    if args.song_id:
        song = synchronizer.find(args.song_id)
        if song is None:
            safe_print(f"Song not found: {args.song_id}", style="red")
            return 1
        mix = [song]
    else:
        mix = library

    return run_player(
        config,
        synchronizer,
        mix=mix,
        repeat_mode=args.repeat or config.player.repeat_mode,
        shuffle=args.shuffle or config.player.shuffle,
    )


def handle_key(controller: PlaybackController, key: Keystroke) -> bool:
    """Dispatch one keypress to the controller. Returns False to quit."""
    session = controller.session
    current = session.current_song

    if key == "q":
        return False
    if key == " ":
        controller.toggle_play()
    elif key == "n":
        controller.play_next()
    elif key == "p":
        controller.play_previous()
    elif key.name == "KEY_RIGHT":
        controller.seek(session.position + SEEK_STEP)
    elif key.name == "KEY_LEFT":
        controller.seek(session.position - SEEK_STEP)
    elif key in ("+", "="):
        safe_print(f"Volume {controller.set_volume(session.volume + VOLUME_STEP)}", style="dim")
    elif key == "-":
        safe_print(f"Volume {controller.set_volume(session.volume - VOLUME_STEP)}", style="dim")
    elif key == "l" and current is not None:
        if controller.toggle_like(current.id):
            liked = controller.session.current_song.is_favorite
            safe_print("♥ Liked" if liked else "Unliked", style="magenta")
    elif key == "d" and current is not None:
        if controller.remove_song(current.id):
            safe_print(f"Deleted {current.artist} - {current.title}", style="red")
    elif key == "r":
        safe_print(f"Repeat: {controller.cycle_repeat_mode().value}", style="dim")
    elif key == "s":
        safe_print(f"Shuffle: {'on' if controller.toggle_shuffle() else 'off'}", style="dim")
    return True


def run_player(
    config: Config,
    synchronizer: LibrarySynchronizer,
    mix: list[Song],
    repeat_mode: Optional[str] = None,
    shuffle: bool = False,
) -> int:
    """Play `mix` until the controller stops or the user hits Ctrl-C."""
    engine = MpvEngine(config.player.mpv_socket_path, volume=config.player.volume)
    try:
        engine.start()
    except EngineError as e:
        safe_print(str(e), style="red")
        return 1

    controller = PlaybackController(
        engine,
        synchronizer,
        repeat_mode=repeat_mode or config.player.repeat_mode,
        shuffle=shuffle,
        volume=config.player.volume,
    )

    last_song_id: list[Optional[str]] = [None]

    def announce(snapshot: PlaybackSnapshot) -> None:
        song = snapshot.current_song
        song_id = song.id if song else None
        if song_id == last_song_id[0]:
            return
        last_song_id[0] = song_id
        if song:
            safe_print(f"▶ {song.artist} - {song.title} [{format_duration(song.duration)}]", style="cyan")

    controller.subscribe(announce)

    interactive = sys.stdin.isatty()
    term = Terminal()
    if interactive:
        safe_print(KEY_HELP, style="dim")

    try:
        controller.play_mix(mix)
        with term.cbreak():
            while controller.session.current_song is not None:
                engine.poll()
                if not interactive:
                    time.sleep(POLL_INTERVAL)
                    continue
                key = term.inkey(timeout=POLL_INTERVAL)
                if key and not handle_key(controller, key):
                    break
        if controller.session.current_song is None:
            safe_print("Queue finished.", style="dim")
        else:
            safe_print("Stopped.", style="dim")
    except KeyboardInterrupt:
        safe_print("\nStopped.", style="dim")
    finally:
        engine.close()
    return 0


COMMANDS = {
    "serve": cmd_serve,
    "signup": cmd_signup,
    "login": cmd_login,
    "logout": cmd_logout,
    "library": cmd_library,
    "import": cmd_import,
    "upload": cmd_upload,
    "like": cmd_like,
    "delete": cmd_delete,
    "cookies": cmd_cookies,
    "vibe": cmd_vibe,
    "play": cmd_play,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vibeflow",
        description="VibeFlow - personal music library and player",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the library server")
    serve_parser.add_argument("--host", help="Bind address (default from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default from config)")

    signup_parser = subparsers.add_parser("signup", help="Create an account")
    signup_parser.add_argument("email")
    signup_parser.add_argument("--name", required=True, help="Display name")
    signup_parser.add_argument("--password", help="Prompted if omitted")

    login_parser = subparsers.add_parser("login", help="Log in")
    login_parser.add_argument("email")
    login_parser.add_argument("--password", help="Prompted if omitted")

    subparsers.add_parser("logout", help="Log out")

    library_parser = subparsers.add_parser("library", help="List songs, newest first")
    library_parser.add_argument("--favorites", action="store_true", help="Only liked songs")

    import_parser = subparsers.add_parser("import", help="Import audio from a YouTube URL")
    import_parser.add_argument("url")

    upload_parser = subparsers.add_parser("upload", help="Upload a local audio file")
    upload_parser.add_argument("file")
    upload_parser.add_argument("--title")
    upload_parser.add_argument("--artist")

    like_parser = subparsers.add_parser("like", help="Toggle a song's favorite flag")
    like_parser.add_argument("song_id")

    delete_parser = subparsers.add_parser("delete", help="Delete a song")
    delete_parser.add_argument("song_id")

    cookies_parser = subparsers.add_parser("cookies", help="Manage YouTube cookies")
    cookies_parser.add_argument("action", choices=["status", "upload", "delete"], nargs="?", default="status")
    cookies_parser.add_argument("file", nargs="?", help="cookies.txt exported from a browser")

    vibe_parser = subparsers.add_parser("vibe", help="Suggest songs matching recent listening")
    vibe_parser.add_argument("history", nargs="*", help="Recently played song ids, oldest first")
    vibe_parser.add_argument("--play", action="store_true", help="Play the suggested mix")

    play_parser = subparsers.add_parser("play", help="Play the library through mpv")
    play_parser.add_argument("song_id", nargs="?", help="Start with this song only")
    play_parser.add_argument("--repeat", choices=["off", "all", "one"])
    play_parser.add_argument("--shuffle", action="store_true")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the vibeflow command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(0)

    ensure_directories()
    config = load_config()
    setup_loguru(
        get_log_file_path(config),
        level=config.logging.level,
        console=config.logging.console_output,
    )

    try:
        sys.exit(COMMANDS[args.subcommand](args, config))
    except NotAuthenticatedError:
        safe_print("Not logged in. Run `vibeflow login EMAIL` first.", style="red")
        sys.exit(1)
    except VibeFlowError as e:
        logger.error(f"{args.subcommand} failed: {e}")
        safe_print(f"Error: {e}", style="red")
        sys.exit(1)


if __name__ == "__main__":
    main()
