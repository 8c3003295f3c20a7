"""Status line sinks used by the connection manager."""

import sys
from dataclasses import dataclass
from typing import Optional, TextIO


@dataclass
class OutputSinks:
    """
    Where human-readable status lines go.
    Either sink may be None; None or blank messages are dropped.
    """
    out: Optional[TextIO] = None
    err: Optional[TextIO] = None

    @classmethod
    def standard(cls) -> "OutputSinks":
        return cls(out=sys.stdout, err=sys.stderr)

    @classmethod
    def silent(cls) -> "OutputSinks":
        return cls(out=None, err=None)

    def print_message(self, message: Optional[str]) -> None:
        self._print(self.out, message)

    def print_error_message(self, message: Optional[str]) -> None:
        self._print(self.err, message)

    @staticmethod
    def _print(sink: Optional[TextIO], message: Optional[str]) -> None:
        if sink is None or message is None or not message.strip():
            return
        sink.write(message + "\n")
