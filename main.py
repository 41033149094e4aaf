# ------------------------------------------------------------------------------
# Main Script for GeoGuardian: device shell, admin web interface and exports
# main.py
# ------------------------------------------------------------------------------
import argparse
import cmd
import json
import os
import shlex
import sys

from config import load_config
config = load_config()
from logging_config import get_logger
logger = get_logger(__name__)

from core.app_context import COLLECTIONS, build_app_context
from core.errors import FieldReportError, describe_error
from device.interfaces import MediaKind, MediaMode
from device.services import PresetMediaPicker

_debug = config["DEBUG_MODE"]

MEDIA_CONFIRMATIONS = {
    MediaKind.IMAGE: "Image sent successfully!",
    MediaKind.VIDEO: "Video sent successfully!",
}


class DeviceShell(cmd.Cmd):
    """
    Interactive device session. Every command prints exactly one line:
    a confirmation or the user-visible error message.
    """

    intro = "GeoGuardian device shell. Type 'help' for commands."
    prompt = "(geoguardian) "

    def __init__(self, context, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.context = context

    def say(self, message):
        self.stdout.write(f"{message}\n")

    def precmd(self, line):
        # Hyphenated command names map onto do_* methods.
        head, _, rest = line.partition(" ")
        return f"{head.replace('-', '_')} {rest}".strip()

    def onecmd(self, line):
        try:
            return super().onecmd(line)
        except FieldReportError as e:
            self.say(describe_error(e))
        except (ValueError, OSError) as e:
            logger.error(f"Command '{line}' failed: {e}", exc_info=_debug)
            self.say(describe_error(e))
        return False

    def emptyline(self):
        return False

    def default(self, line):
        self.say(f"Unknown command: {line}")

    # -----------------------------
    # Session
    # -----------------------------
    def do_login(self, arg):
        """login USER SECRET - start a session."""
        parts = shlex.split(arg)
        if len(parts) != 2:
            self.say("Usage: login USER SECRET")
            return
        session = self.context.sessions.login(parts[0], parts[1])
        suffix = " (primary account)" if session.is_primary else ""
        self.say(f"Logged in as {session.username}{suffix}")

    def do_logout(self, arg):
        """logout - end the session."""
        self.context.sessions.logout()
        self.say("Logged out.")

    def do_reset_primary(self, arg):
        """reset-primary - forget the primary account."""
        self.context.sessions.reset_primary_account()
        self.say("Primary account reset.")

    def do_whoami(self, arg):
        """whoami - show device identity and session."""
        identity = self.context.identity.ensure_identity()
        session = self.context.sessions.current_session
        if session is None:
            user = "not logged in"
        else:
            user = session.username + (" (primary account)" if session.is_primary else "")
        sent = ", location sent" if self.context.pipeline.location_sent else ""
        self.say(f"Device {identity.id} installed {identity.installed_at}; {user}{sent}")

    # -----------------------------
    # Capture
    # -----------------------------
    def do_send_location(self, arg):
        """send-location - submit the current position."""
        self.context.pipeline.submit_location()
        self.say("Location sent successfully!")

    def do_send_media(self, arg):
        """send-media MODE PATH - upload a file; MODE is image/camera, image/gallery, video/camera or video/gallery."""
        parts = shlex.split(arg)
        if len(parts) != 2:
            self.say(f"Usage: send-media MODE PATH ({', '.join(m.value for m in MediaMode)})")
            return
        mode = MediaMode(parts[0])
        record = self.context.pipeline.submit_media(
            mode=mode, picker=PresetMediaPicker(mode, parts[1])
        )
        if record is None:
            self.say("Canceled.")
            return
        self.say(MEDIA_CONFIRMATIONS[record.media_kind])

    # -----------------------------
    # Export
    # -----------------------------
    def do_export(self, arg):
        """export locations|media - write a spreadsheet of the collection."""
        kind = arg.strip()
        if kind not in COLLECTIONS:
            self.say("Usage: export locations|media")
            return
        path = self.context.export_job.export_all(COLLECTIONS[kind])
        self.say(f"Exported to {path}")

    def do_quit(self, arg):
        """quit - leave the shell."""
        return True

    do_EOF = do_quit


def run_serve(args):
    from web.web_interface import create_web_interface

    context = build_app_context(config)
    interface = create_web_interface(context)
    try:
        interface["run"](debug=_debug, host=args.host, port=args.port)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received. Shutting down...")
    finally:
        context.close()
    return 0


def run_device(args):
    context = build_app_context(config)
    try:
        DeviceShell(context).cmdloop()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received. Leaving device shell...")
    finally:
        context.close()
    return 0


def run_export(args):
    context = build_app_context(config)
    try:
        path = context.export_job.export_all(COLLECTIONS[args.collection])
    except FieldReportError as e:
        print(describe_error(e))
        return 1
    finally:
        context.close()
    print(f"Exported to {path}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="geoguardian",
        description="Collect device locations and media, and review them as an administrator.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the admin web interface")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.set_defaults(func=run_serve)

    device = subparsers.add_parser("device", help="Start an interactive device session")
    device.set_defaults(func=run_device)

    export = subparsers.add_parser("export", help="Export a collection to .xlsx")
    export.add_argument("collection", choices=sorted(COLLECTIONS))
    export.set_defaults(func=run_export)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logger.info(f"Debug mode is {'enabled' if _debug else 'disabled'}.")
    if _debug:
        logger.debug(f"Configuration: {json.dumps(config, indent=2)}")
    os.makedirs(config["OUTPUT_DIR"], exist_ok=True)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
