"""
User interaction for the Lambda File Deployer.

The deploy flow only needs three capabilities from its host: prompting for a
validated string, choosing among labeled options, and reporting progress and
outcomes. UserInterface describes them; ConsoleInterface implements them on a
terminal.
"""
import getpass
import logging
import sys
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence

from lambda_file_deployer.errors import ValidationError

logger = logging.getLogger(__name__)

Validator = Callable[[str], str]


class UserInterface(ABC):
    """Interaction capabilities used by the credential resolver and the orchestrator."""

    @abstractmethod
    def prompt(
        self,
        message: str,
        *,
        value: Optional[str] = None,
        placeholder: Optional[str] = None,
        password: bool = False,
        validate: Optional[Validator] = None,
    ) -> Optional[str]:
        """
        Ask the user for a string.

        Args:
            message: Prompt text
            value: Pre-filled value
            placeholder: Hint shown when the input is empty
            password: Hide the typed characters
            validate: Callable raising ValidationError for unacceptable input

        Returns:
            The accepted value, or None if the user cancelled
        """

    @abstractmethod
    def choose(self, message: str, options: Sequence[str]) -> Optional[str]:
        """Ask the user to pick one of the options; None if dismissed."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Ask a yes/no question."""

    @abstractmethod
    def info(self, message: str) -> None:
        """Report an informational message."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Report a successful outcome."""

    @abstractmethod
    def warning(self, message: str) -> None:
        """Report a warning."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Report an error."""

    @contextmanager
    def progress(self, title: str) -> Iterator[None]:
        """Show that a long-running task is in progress."""
        self.info(title)
        yield


class ConsoleInterface(UserInterface):
    """
    Terminal implementation of UserInterface.

    An empty answer (or end of input) cancels a prompt unless a pre-filled
    value is available. Invalid answers are reported and asked again.
    """

    def __init__(self, stdin=None, stdout=None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def _write(self, text: str) -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()

    def _read(self, label: str, password: bool = False) -> Optional[str]:
        try:
            if password and self.stdin is sys.stdin:
                return getpass.getpass(label)
            self.stdout.write(label)
            self.stdout.flush()
            line = self.stdin.readline()
        except (EOFError, KeyboardInterrupt):
            self._write("")
            return None
        if not line:
            return None
        return line.rstrip("\r\n")

    def prompt(
        self,
        message: str,
        *,
        value: Optional[str] = None,
        placeholder: Optional[str] = None,
        password: bool = False,
        validate: Optional[Validator] = None,
    ) -> Optional[str]:
        hint = value or placeholder
        label = f"{message} [{hint}]: " if hint else f"{message}: "

        while True:
            answer = self._read(label, password=password)
            if answer is None:
                return None
            answer = answer.strip() or (value or "")
            if not answer:
                return None
            if validate is None:
                return answer
            try:
                return validate(answer)
            except ValidationError as e:
                self.error(str(e))

    def choose(self, message: str, options: Sequence[str]) -> Optional[str]:
        choices: List[str] = list(options)
        if not choices:
            return None

        self._write(message)
        for index, option in enumerate(choices, start=1):
            self._write(f"  {index}) {option}")

        while True:
            answer = self._read(f"Select 1-{len(choices)} (empty to cancel): ")
            if not answer or not answer.strip():
                return None
            try:
                index = int(answer.strip())
            except ValueError:
                self.error("Please enter a number")
                continue
            if 1 <= index <= len(choices):
                return choices[index - 1]
            self.error(f"Please enter a number between 1 and {len(choices)}")

    def confirm(self, message: str) -> bool:
        answer = self._read(f"{message} [y/N]: ")
        return bool(answer) and answer.strip().lower() in {"y", "yes"}

    def info(self, message: str) -> None:
        self._write(message)

    def success(self, message: str) -> None:
        self._write(f"✅ {message}")

    def warning(self, message: str) -> None:
        self._write(f"⚠️ {message}")

    def error(self, message: str) -> None:
        self._write(f"❌ {message}")

    @contextmanager
    def progress(self, title: str) -> Iterator[None]:
        self._write(f"{title}...")
        started = time.monotonic()
        try:
            yield
        finally:
            logger.debug(f"{title} finished in {time.monotonic() - started:0.1f}s")
