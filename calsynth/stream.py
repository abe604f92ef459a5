# calsynth/stream.py
"""
fast-import stream encoding.

Responsibilities:
- Model blob and commit records with exact byte framing
- Drive marks, activity log and timestamps per commit unit
- Build the complete stream in memory, terminated by "done"

This module does NOT:
- validate or sort calendars
- create directories
- run git
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple, Union
import logging

from calsynth.activity import ActivityLog, activity_line
from calsynth.layout import LOG_FILE, STATIC_FILE
from calsynth.marks import MarkAllocator
from calsynth.timestamps import MAX_UNITS_PER_DAY, TimestampSynthesizer
from calsynth.validation import ContributionDay, Identity


logger = logging.getLogger(__name__)


DEFAULT_BRANCH = "refs/heads/main"
FILE_MODE = "100644"
STATIC_MARK = 1
DONE = b"done\n"


@dataclass(frozen=True)
class FileOp:
    mode: str
    mark: int
    path: str

    def dump(self) -> bytes:
        return f"M {self.mode} :{self.mark} {self.path}\n".encode("utf-8")


@dataclass(frozen=True)
class Blob:
    mark: int
    content: bytes

    def dump(self) -> bytes:
        header = f"blob\nmark :{self.mark}\ndata {len(self.content)}\n".encode("ascii")
        return header + self.content + b"\n"


@dataclass(frozen=True)
class Commit:
    ref: str
    identity: Identity
    when: int
    offset: str
    message: str
    file_ops: Tuple[FileOp, ...] = field(default_factory=tuple)

    def dump(self) -> bytes:
        who = f"{self.identity.name} <{self.identity.email}> {self.when} {self.offset}"
        msg = self.message.encode("utf-8")

        out = bytearray()
        out += f"commit {self.ref}\n".encode("utf-8")
        out += f"author {who}\n".encode("utf-8")
        out += f"committer {who}\n".encode("utf-8")
        out += f"data {len(msg)}\n".encode("ascii")
        out += msg
        out += b"\n"
        for op in self.file_ops:
            out += op.dump()
        return bytes(out)


Record = Union[Blob, Commit]


@dataclass(frozen=True)
class EncodedStream:
    data: bytes
    commit_count: int
    last_mark: int
    activity: bytes
    first_when: int
    last_when: int


def commit_message(day: str, index: int, count: int) -> str:
    return f"Contribution on {day} ({index}/{count})"


class StreamEncoder:
    """
    Encode a normalised calendar as a single-branch fast-import stream.

    Mark 1 holds the static file. Each commit unit appends one line to the
    activity log, stores the whole log under the next mark and commits both
    files. Mark and log state is created per call and never shared.
    """

    def __init__(
        self,
        identity: Identity,
        synthesizer: Optional[TimestampSynthesizer] = None,
        *,
        branch: str = DEFAULT_BRANCH,
        static_path: str = STATIC_FILE,
        log_path: str = LOG_FILE,
    ) -> None:
        self.identity = identity
        self.synthesizer = synthesizer or TimestampSynthesizer()
        self.branch = branch
        self.static_path = static_path
        self.log_path = log_path

    def iter_records(
        self,
        days: Sequence[ContributionDay],
        static_content: bytes,
    ) -> Iterator[Record]:
        """
        Yield records in stream order. days must already be normalised.
        """
        marks = MarkAllocator()
        log = ActivityLog()

        static_mark = marks.allocate()
        yield Blob(mark=static_mark, content=static_content)

        for day in days:
            if day.count > MAX_UNITS_PER_DAY:
                logger.warning(
                    "%s has %d commits, more than %d may spill into the next day",
                    day.date,
                    day.count,
                    MAX_UNITS_PER_DAY,
                )

            for i in range(day.count):
                index = i + 1

                log.append(activity_line(day.date, index))
                mark = marks.allocate()
                yield Blob(mark=mark, content=log.snapshot())

                secs, offset = self.synthesizer.synthesize(day.date, i)
                yield Commit(
                    ref=self.branch,
                    identity=self.identity,
                    when=secs,
                    offset=offset,
                    message=commit_message(day.date, index, day.count),
                    file_ops=(
                        FileOp(FILE_MODE, static_mark, self.static_path),
                        FileOp(FILE_MODE, mark, self.log_path),
                    ),
                )

    def encode(self, days: Sequence[ContributionDay], static_content: bytes) -> EncodedStream:
        """
        Build the whole stream in memory.

        Raises DateParseError before returning anything if a day is malformed.
        """
        out = bytearray()
        commits = 0
        last_mark = 0
        activity = b""
        first_when = last_when = 0

        for record in self.iter_records(days, static_content):
            out += record.dump()
            if isinstance(record, Blob):
                last_mark = record.mark
                if record.mark != STATIC_MARK:
                    activity = record.content
            else:
                if commits == 0:
                    first_when = record.when
                last_when = record.when
                commits += 1

        out += DONE

        logger.debug(
            "encoded %d commits, %d marks, %d bytes",
            commits,
            last_mark,
            len(out),
        )

        return EncodedStream(
            data=bytes(out),
            commit_count=commits,
            last_mark=last_mark,
            activity=activity,
            first_when=first_when,
            last_when=last_when,
        )


def encode_calendar(
    days: Sequence[ContributionDay],
    identity: Identity,
    static_content: str,
    *,
    synthesizer: Optional[TimestampSynthesizer] = None,
    branch: str = DEFAULT_BRANCH,
) -> EncodedStream:
    encoder = StreamEncoder(identity, synthesizer, branch=branch)
    return encoder.encode(days, static_content.encode("utf-8"))


def parse_records(data: bytes) -> List[Tuple[str, int, bytes]]:
    """
    Split a stream produced by this module into (kind, mark, payload) tuples.

    kind is "blob", "commit" or "done". For blobs mark is the defined mark and
    payload the content. For commits mark is 0 and payload the raw header and
    file-op lines. Used to audit streams, not a general fast-import parser.
    """
    records: List[Tuple[str, int, bytes]] = []
    pos = 0

    while pos < len(data):
        nl = data.index(b"\n", pos)
        line = data[pos:nl]

        if line == b"done":
            records.append(("done", 0, b""))
            pos = nl + 1
            continue

        if line == b"blob":
            mark_end = data.index(b"\n", nl + 1)
            mark = int(data[nl + 1 : mark_end].split(b":", 1)[1])
            data_end = data.index(b"\n", mark_end + 1)
            size = int(data[mark_end + 1 : data_end].split(b" ", 1)[1])
            start = data_end + 1
            records.append(("blob", mark, data[start : start + size]))
            pos = start + size + 1
            continue

        if line.startswith(b"commit "):
            start = pos
            cursor = nl + 1
            while not data.startswith(b"data ", cursor):
                cursor = data.index(b"\n", cursor) + 1
            data_end = data.index(b"\n", cursor)
            size = int(data[cursor + 5 : data_end])
            cursor = data_end + 1 + size + 1
            while data.startswith(b"M ", cursor):
                cursor = data.index(b"\n", cursor) + 1
            records.append(("commit", 0, data[start:cursor]))
            pos = cursor
            continue

        raise ValueError(f"unexpected stream line at byte {pos}: {line!r}")

    return records
