"""
Multi-component logger for the felis server bootstrapper.
"""

import inspect
import logging
from datetime import datetime

from pydantic import BaseModel


class LogLine(BaseModel):
    """
    Represents a line in the bootstrap log
    """

    time: str
    level: str
    caller_file: str
    caller_name: str
    caller_line: int
    message: str


class FelisLogger:
    """
    Logger class shared by every stage of the bootstrap pipeline
    """

    def __init__(self, name: str = "felis_server") -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

    def log(self, debug_message: str, level: int, sanitized_error_message: str = "") -> None:
        """
        Log the debug and sanitized messages using the logger
        """

        debug_message = debug_message.replace("'", '"').replace("\n", " ")
        sanitized_error_message = sanitized_error_message.replace("'", '"').replace("\n", " ")

        # Collect details about the callee
        caller_frame = inspect.currentframe().f_back
        caller_file = caller_frame.f_code.co_filename
        caller_line = caller_frame.f_lineno
        caller_name = caller_frame.f_code.co_name

        message = debug_message
        if sanitized_error_message:
            message = f"{debug_message} ({sanitized_error_message})"

        self.logger.log(
            level=level,
            msg=LogLine(
                time=str(datetime.now()),
                level=logging.getLevelName(level),
                caller_file=caller_file,
                caller_name=caller_name,
                caller_line=caller_line,
                message=message,
            ).model_dump_json(),
        )
