"""
ThunderBBS Command Dispatcher

Routes input lines to command handlers, one line at a time per session.
"""

import sqlite3
import logging
from typing import Optional, TYPE_CHECKING

from ..core.colors import (
    COLOR_CODES,
    COLOR_ELEMENTS,
    DEFAULT_COLORS,
    default_colors,
    highlight,
    is_valid_color,
    paint,
    resolve_color,
)
from ..db.users import UserRepository, PreferenceRepository, PREFERENCE_COLUMNS
from ..utils.formatting import format_clock, format_date, format_datetime, format_time, parse_id
from .parser import ParsedCommand, parse, split_separator

if TYPE_CHECKING:
    from ..core.bbs import ThunderBBS
    from ..core.sessions import Session

logger = logging.getLogger(__name__)

SERVER_ERROR = "A server error occurred. Please try again later."
INVALID_LOGIN = "Invalid username or password."

SENDMAIL_USAGE = "Usage: SENDMAIL <recipient_username> <subject> /// [optional_message_body]"
UPLOADINFO_USAGE = "Usage: UPLOADINFO <area_name_or_id> <filename> /// [description]"
FILEDESC_USAGE = "Usage: FILEDESC <file_id> /// <description>"
GAME_USAGE = "Invalid game command. Usage: GAME LIST, GAME <game_name> START, GAME QUIT."


class CommandDispatcher:
    """
    Dispatches commands to appropriate handlers.

    Commands are case-insensitive. While a session is playing a game, its
    input goes to the game router instead. Every other line first picks up
    any broadcasts the session has not seen yet.
    """

    def __init__(self, bbs: "ThunderBBS"):
        """
        Initialize dispatcher with BBS instance.

        Args:
            bbs: Parent BBS instance for accessing services
        """
        self.bbs = bbs

        # Command registry: command -> (handler_func, access_level, help_text)
        # Access levels: "always", "authenticated", "sysop"
        self._commands = {}

        self._register_builtins()

    def _register_builtins(self):
        """Register built-in commands."""
        # Boards
        self.register("LOOK", self.cmd_look, "always", "LOOK - View recent messages (on current board)")
        self.register("SAY", self.cmd_say, "authenticated", "SAY <message> - Post a message (on current board, login required)")
        self.register("LISTBOARDS", self.cmd_listboards, "always", "LISTBOARDS - List all available message boards")
        self.register("JOINBOARD", self.cmd_joinboard, "always", "JOINBOARD <board_name_or_id> - Join a specific message board")

        # Mail
        self.register("SENDMAIL", self.cmd_sendmail, "authenticated", "SENDMAIL <recipient> <subject> /// [body] - Send a private message")
        self.register("LISTMAIL", self.cmd_listmail, "authenticated", "LISTMAIL - List your private messages")
        self.register("READMAIL", self.cmd_readmail, "authenticated", "READMAIL <message_id> - Read a specific private message")
        self.register("DELETEMAIL", self.cmd_deletemail, "authenticated", "DELETEMAIL <message_id> - Delete a specific private message")

        # Files
        self.register("LISTFILEAREAS", self.cmd_listfileareas, "always", "LISTFILEAREAS - List all available file areas")
        self.register("LISTFILES", self.cmd_listfiles, "always", "LISTFILES [area_name_or_id] - List files in an area (defaults to 'General Files')")
        self.register("FILEDESC", self.cmd_filedesc, "authenticated", "FILEDESC <file_id> /// <description> - Add/change a file's description")
        self.register("DOWNLOADINFO", self.cmd_downloadinfo, "authenticated", "DOWNLOADINFO <file_id> - Simulate downloading a file & update count")

        # Games
        self.register("GAME", self.cmd_game, "always", "GAME LIST | GAME <game_name> START | GAME QUIT - Play a game")

        # Account
        self.register("REGISTER", self.cmd_register, "always", "REGISTER <username> <password> - Create a new account")
        self.register("LOGIN", self.cmd_login, "always", "LOGIN <username> <password> - Log into your account")
        self.register("LOGOUT", self.cmd_logout, "always", "LOGOUT - Log out")
        self.register("SETCOLOR", self.cmd_setcolor, "authenticated", "SETCOLOR <element> <color> - Change a display color (HELP SETCOLOR)")
        self.register("WHO", self.cmd_who, "always", "WHO - List active users")
        self.register("HELP", self.cmd_help, "always", "HELP - Show this help message")

        # Sysop
        self.register("KICK", self.cmd_kick, "sysop", "KICK <username> - Disconnect a user")
        self.register("BROADCAST", self.cmd_broadcast, "sysop", "BROADCAST <message> - Send a message to all users")
        self.register("EDITMESSAGE", self.cmd_editmessage, "sysop", "EDITMESSAGE <id> <new_text> - Edit a public board message")
        self.register("DELETEMESSAGE", self.cmd_deletemessage, "sysop", "DELETEMESSAGE <id> - Delete a public board message")
        self.register("UPLOADINFO", self.cmd_uploadinfo, "sysop", "UPLOADINFO <area> <filename> /// [desc] - Add file info")

    def register(
        self,
        command: str,
        handler,
        access: str,
        help_text: str
    ):
        """Register a command handler."""
        self._commands[command.upper()] = (handler, access, help_text)

    def dispatch(self, session_id: str, session: "Session", line: Optional[str]) -> str:
        """
        Process one input line for a session.

        Args:
            session_id: Id of the session issuing the command
            session: The session record
            line: Raw input line

        Returns:
            Response text (empty string for blank input)
        """
        if session.game is not None:
            return self.bbs.games.route(session, line or "")

        broadcasts = self.bbs.broadcasts
        pending = broadcasts.since(session.last_broadcast_index)
        seen_to = broadcasts.tail_index

        response = self._execute(session_id, session, parse(line))

        if seen_to > session.last_broadcast_index:
            session.last_broadcast_index = seen_to

        if not pending:
            return response

        lines = [
            f"{highlight(session, 'bright_magenta', f'[BROADCAST {format_clock(b.timestamp)}]')} {b.text}"
            for b in pending
        ]
        if response:
            lines.append(response)
        return "\n".join(lines)

    def _execute(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Look up and run the handler for a parsed command."""
        if cmd.is_empty:
            return ""

        if cmd.command not in self._commands:
            return f"Unknown command: {cmd.command}"

        handler, access, _ = self._commands[cmd.command]

        if access == "authenticated" and not session.logged_in:
            return f"You must be logged in to use the {cmd.command} command. Type LOGIN <username> <password>."

        if access == "sysop" and not session.is_sysop:
            return "Access denied."

        try:
            self.bbs.stats.commands_processed += 1
            return handler(session_id, session, cmd)
        except sqlite3.Error as e:
            logger.error(f"Database error executing {cmd.command}: {e}")
            self.bbs.stats.errors += 1
            return SERVER_ERROR

    # === Account Commands ===

    def cmd_register(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Register new account."""
        if len(cmd.args) != 2:
            return "Usage: REGISTER <username> <password>"

        username, password = cmd.args
        user_repo = UserRepository(self.bbs.db)

        try:
            with self.bbs.db.transaction():
                if user_repo.get_user_by_username(username):
                    return "Username already taken. Please try another."

                password_hash = self.bbs.crypto.hash_password(password)
                user_repo.create_user(username, password_hash)
        except sqlite3.Error as e:
            logger.error(f"Registration error: {e}")
            self.bbs.stats.errors += 1
            return "Registration failed due to a server error. Please try again later."

        self.bbs.stats.users_registered += 1
        logger.info(f"User registered: {username}")
        return "Registration successful. You can now LOGIN."

    def cmd_login(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Login user."""
        if len(cmd.args) != 2:
            return "Usage: LOGIN <username> <password>"

        username, password = cmd.args
        user_repo = UserRepository(self.bbs.db)

        user = user_repo.get_user_by_username(username)
        if not user:
            return INVALID_LOGIN

        if not self.bbs.crypto.verify_password(password, user.password_hash):
            return INVALID_LOGIN

        session.username = user.username
        session.logged_in = True
        session.user_id = user.id
        session.role = user.role
        self.bbs.sessions.reset_board(session)
        session.prefs = self._load_preferences(user.id)

        lines = [f"Welcome, {user.username}! Login successful. Current board: {session.board_name}"]

        unread = self.bbs.mail_service.unread_count(user.id)
        if unread:
            lines.append(f"You have {unread} unread private message(s). Type LISTMAIL to read.")

        self.bbs.stats.logins += 1
        logger.info(f"User {user.username} logged in (session {session_id[:8]})")
        return "\n".join(lines)

    def _load_preferences(self, user_id: int) -> dict[str, str]:
        """Defaults overlaid with the user's saved colors."""
        prefs = default_colors()
        row = PreferenceRepository(self.bbs.db).get_preferences(user_id)
        if row:
            for element, column in PREFERENCE_COLUMNS.items():
                value = getattr(row, column)
                if value:
                    prefs[element] = value
        return prefs

    def cmd_logout(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Logout user."""
        if session.logged_in:
            logger.info(f"User {session.username} logged out (session {session_id[:8]})")
        self.bbs.sessions.reset_identity(session)
        return "You have been logged out."

    def cmd_setcolor(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Set a display color: SETCOLOR <element> <color>"""
        if len(cmd.args) != 2:
            return "Usage: SETCOLOR <element> <color>. Type HELP SETCOLOR for options."

        element, color = cmd.args[0].lower(), cmd.args[1].lower()

        if element not in COLOR_ELEMENTS:
            return f"Invalid element '{cmd.args[0]}'. Valid elements: {', '.join(COLOR_ELEMENTS)}."

        if not is_valid_color(color):
            return f"Invalid color '{cmd.args[1]}'. Type HELP SETCOLOR for the list of colors."

        PreferenceRepository(self.bbs.db).set_color(session.user_id, element, color)
        session.prefs[element] = color

        return f"Color for {element} set to {highlight(session, color, color)}."

    def cmd_who(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Show online users."""
        active = [s.username for s in self.bbs.sessions.logged_in()]

        if not active:
            return "No users currently logged in."

        return "Active users:\n" + "\n".join(paint(session, "username", name) for name in active)

    def cmd_help(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Show help information."""
        if cmd.args and cmd.args[0].upper() == "SETCOLOR":
            return self._setcolor_help(session)

        lines = ["Available commands:"]
        for _, access, help_text in self._commands.values():
            if access != "sysop":
                lines.append(help_text)
        lines.append("QUIT - Disconnect (Telnet only)")
        lines.append("")
        lines.append("While in a game, most other commands are unavailable. Type 'quit' or 'exit' to leave the game.")

        if session.is_sysop:
            lines.append("")
            lines.append("SysOp Commands:")
            for _, access, help_text in self._commands.values():
                if access == "sysop":
                    lines.append(help_text)

        return "\n".join(lines)

    def _setcolor_help(self, session: "Session") -> str:
        lines = [
            "SETCOLOR <element> <color> - Change a display color (Telnet only, saved to your account)",
            "",
            "Elements:",
        ]
        for element in COLOR_ELEMENTS:
            current = resolve_color(session, element)
            lines.append(f"  {element:<10} current: {current} (default: {DEFAULT_COLORS[element]})")
        lines.append("")
        lines.append("Colors:")
        lines.append("  " + ", ".join(highlight(session, name, name) for name in COLOR_CODES))
        return "\n".join(lines)

    # === Board Commands ===

    def cmd_look(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """List the newest posts on the current board."""
        posts = self.bbs.board_service.recent_posts(session.board_id)

        header = f"Messages in [{session.board_name}]:"
        if not posts:
            return header + "\nNo messages yet on this board."

        lines = [header]
        for post in posts:
            stamp = paint(session, "timestamp", f"[{format_time(post.timestamp)}]")
            author = paint(session, "username", post.username)
            lines.append(f"{stamp} {author}: {post.body}")

        return "\n".join(lines)

    def cmd_say(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Post to the current board: SAY <message>"""
        post, error = self.bbs.board_service.create_post(
            board_id=session.board_id,
            user_id=session.user_id,
            body=cmd.rest()
        )

        if error:
            return error

        return "Message posted."

    def cmd_listboards(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """List all boards."""
        boards = self.bbs.board_service.list_boards()

        if not boards:
            return "No message boards available."

        lines = ["Available Message Boards:"]
        for board in boards:
            lines.append(
                f"{highlight(session, 'cyan', f'{board.id}.')} "
                f"{highlight(session, 'bright_yellow', board.name)} - "
                f"{board.description or 'No description'}"
            )

        return "\n".join(lines)

    def cmd_joinboard(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Switch boards: JOINBOARD <board_name_or_id>"""
        ref = cmd.rest()
        if not ref:
            return "Usage: JOINBOARD <board_name_or_id>"

        board, error = self.bbs.board_service.find_board(ref)
        if error:
            return error

        session.board_id = board.id
        session.board_name = board.name

        return f"Joined board: {board.name}. Messages for LOOK and SAY will now use this board."

    # === Mail Commands ===

    def cmd_sendmail(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Send mail: SENDMAIL <recipient> <subject> /// [body]"""
        if not cmd.args:
            return SENDMAIL_USAGE

        recipient = cmd.args[0]
        subject, body = split_separator(cmd.rest(1))

        if not subject:
            return SENDMAIL_USAGE

        message, error = self.bbs.mail_service.compose_mail(
            sender_user_id=session.user_id,
            recipient_username=recipient,
            subject=subject,
            body=body or ""
        )

        if error:
            return error

        return "Message sent successfully."

    def cmd_listmail(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """List received mail, unread marked with '*'."""
        messages = self.bbs.mail_service.list_mail(session.user_id)

        if not messages:
            return "You have no private messages."

        lines = ["Your Private Messages:"]
        for msg in messages:
            marker = "  " if msg.is_read else highlight(session, "bright_green", "* ")
            lines.append(
                f"{marker}{highlight(session, 'cyan', f'{msg.id}:')} "
                f"From: {paint(session, 'username', msg.sender_username)} "
                f"Sub: {msg.subject} ({format_datetime(msg.timestamp)})"
            )

        return "\n".join(lines)

    def cmd_readmail(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Read mail: READMAIL <message_id>"""
        message_id = parse_id(cmd.args[0]) if len(cmd.args) == 1 else None
        if message_id is None:
            return "Usage: READMAIL <message_id>"

        mail, error = self.bbs.mail_service.read_mail(session.user_id, message_id)
        if error:
            return error

        lines = [
            f"From: {mail.sender_username}",
            f"Subject: {mail.subject}",
            f"Date: {format_datetime(mail.timestamp)}",
            "",
            mail.body,
        ]

        return "\n".join(lines)

    def cmd_deletemail(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Delete mail: DELETEMAIL <message_id>"""
        message_id = parse_id(cmd.args[0]) if len(cmd.args) == 1 else None
        if message_id is None:
            return "Usage: DELETEMAIL <message_id>"

        success, error = self.bbs.mail_service.delete_mail(session.user_id, message_id)
        if error:
            return error

        return "Message deleted."

    # === File Commands ===

    def cmd_listfileareas(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """List all file areas."""
        areas = self.bbs.file_service.list_areas()

        if not areas:
            return "No file areas available."

        lines = ["Available File Areas:"]
        for area in areas:
            lines.append(
                f"{highlight(session, 'cyan', f'{area.id}.')} "
                f"{highlight(session, 'bright_yellow', area.name)} - "
                f"{area.description or 'No description'}"
            )

        return "\n".join(lines)

    def cmd_listfiles(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """List files: LISTFILES [area_name_or_id]"""
        area, error = self.bbs.file_service.find_area(cmd.rest() or None)
        if error:
            return error

        files = self.bbs.file_service.list_files(area.id)

        header = f"Files in [{area.name}]:"
        if not files:
            return header + "\nNo files in this area."

        lines = [header]
        for f in files:
            lines.append(
                f"{highlight(session, 'cyan', f'{f.id}.')} "
                f"{highlight(session, 'bright_yellow', f.filename)} - "
                f"{f.description or 'No description'} "
                f"(Uploaded by: {paint(session, 'username', f.uploader_username)} "
                f"on {format_date(f.upload_date)}, Downloads: {f.download_count})"
            )

        return "\n".join(lines)

    def cmd_uploadinfo(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Add file metadata: UPLOADINFO <area> <filename> /// [description]"""
        if not cmd.args:
            return UPLOADINFO_USAGE

        area_ref = cmd.args[0]
        prefix, description = split_separator(cmd.rest(1))
        fields = prefix.split()
        if not fields:
            return UPLOADINFO_USAGE

        listing, error = self.bbs.file_service.add_listing(
            area_ref=area_ref,
            filename=fields[0],
            description=description or "",
            uploader_user_id=session.user_id
        )

        if error:
            return error

        return "File information uploaded successfully."

    def cmd_filedesc(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Change a file description: FILEDESC <file_id> /// <description>"""
        prefix, description = split_separator(cmd.rest())
        # Only the first word names the file; anything after it up to /// is ignored
        words = prefix.split()
        file_id = parse_id(words[0]) if words else None

        if file_id is None or description is None:
            return FILEDESC_USAGE

        if not description:
            return f"Description cannot be empty when using '///'. {FILEDESC_USAGE}"

        success, error = self.bbs.file_service.set_description(session, file_id, description)
        if error:
            return error

        return "File description updated."

    def cmd_downloadinfo(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Simulate a download: DOWNLOADINFO <file_id>"""
        file_id = parse_id(cmd.args[0]) if len(cmd.args) == 1 else None
        if file_id is None:
            return "Usage: DOWNLOADINFO <file_id>"

        listing, error = self.bbs.file_service.record_download(file_id)
        if error:
            return error

        return f"Simulated download of [{listing.filename}]. Download count updated."

    # === Game Commands ===

    def cmd_game(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """GAME LIST | GAME <name> START | GAME START <name> | GAME <name> | GAME QUIT"""
        games = self.bbs.games

        if not cmd.args:
            return "Usage: GAME <action|game_name> [START|action_argument] or GAME LIST/QUIT/EXIT."

        action = cmd.args[0].upper()
        second = cmd.args[1].upper() if len(cmd.args) > 1 else None

        if action == "LIST":
            return "Available games:\n" + "\n".join(f"- {name}" for name in games.game_names)

        if action in ("QUIT", "EXIT"):
            return games.quit(session)

        if action == "START" and second:
            target = second
        elif second == "START":
            target = action
        elif second is None and games.is_known(action):
            target = action
        else:
            return GAME_USAGE

        if session.game is not None:
            return "You are already in a game. Type QUIT or EXIT to leave it first."

        if not games.is_known(target):
            available = ", ".join(games.game_names)
            return f"Unknown game to start. Available: {available}. Usage: GAME <game_name> START"

        return games.start(session, target)

    # === Sysop Commands ===

    def cmd_kick(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Remove a logged-in user's session (sysop only)."""
        if len(cmd.args) != 1:
            return "Usage: KICK <username>"

        target = cmd.args[0]
        for sid, other in self.bbs.sessions.items():
            if other.username != target or not other.logged_in:
                continue

            if sid == session_id:
                return "You cannot kick yourself."

            self.bbs.sessions.end(sid)
            logger.info(f"{session.username} kicked {target} (session {sid[:8]})")
            return f"User {target} has been kicked. Their session is invalidated."

        return f"User {target} not found or not currently logged in."

    def cmd_broadcast(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Queue a broadcast for every session (sysop only)."""
        text = cmd.rest()
        if not text:
            return "Broadcast message cannot be empty. Usage: BROADCAST <message>"

        self.bbs.broadcasts.append(text)
        logger.info(f"Broadcast from {session.username}")
        return "Broadcast message sent."

    def cmd_editmessage(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Replace a post body by id (sysop only)."""
        if not cmd.args:
            return "Usage: EDITMESSAGE <message_id> <new_text>"

        post_id = parse_id(cmd.args[0])
        if post_id is None:
            return "Invalid message ID."

        text = cmd.rest(1)
        if not text:
            return "Usage: EDITMESSAGE <message_id> <new_text>"

        success, error = self.bbs.board_service.edit_post(post_id, text)
        if error:
            return error

        return "Message updated."

    def cmd_deletemessage(self, session_id: str, session: "Session", cmd: ParsedCommand) -> str:
        """Delete a post by id (sysop only)."""
        if len(cmd.args) != 1:
            return "Usage: DELETEMESSAGE <message_id>"

        post_id = parse_id(cmd.args[0])
        if post_id is None:
            return "Invalid message ID."

        success, error = self.bbs.board_service.delete_post(post_id)
        if error:
            return error

        return "Message deleted from board."
