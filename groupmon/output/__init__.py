"""Group file protocol, sink, reader and terminal output."""

from groupmon.output.header import (
    GROUP_FILE_SIGNATURE,
    GROUP_FILE_VERSION,
    HEADER_LEN,
    MAX_RECORD_TIME,
    RECORD_LEN,
    encode_header,
    encode_records,
)
from groupmon.output.reader import GroupFile, GroupFileFormatError, read_group_file
from groupmon.output.sink import GroupFileSink
from groupmon.output.tui_logger import TUILogger

__all__ = [
    "GROUP_FILE_SIGNATURE",
    "GROUP_FILE_VERSION",
    "GroupFile",
    "GroupFileFormatError",
    "GroupFileSink",
    "HEADER_LEN",
    "MAX_RECORD_TIME",
    "RECORD_LEN",
    "TUILogger",
    "encode_header",
    "encode_records",
    "read_group_file",
]
