"""Byte-level structure fixes and the external Ghostscript repair pass."""

import re
import subprocess
from pathlib import Path

from labreport.logging.logger import Log
from labreport.recovery.exceptions import RepairError

_OBJECT_PATTERN = re.compile(r"\d+\s+\d+\s+obj")
_EMPTY_STREAM_PATTERN = re.compile(r"stream\s*\n[\x00-\xff]{0,50}?endstream")
_ENCRYPT_REF_PATTERN = re.compile(r"/Encrypt\s+\d+\s+\d+\s+R")
_ENCRYPT_DICT_PATTERN = re.compile(r"/Encrypt\s*<<[^>]*>>")
_INFO_REF_PATTERN = re.compile(r"/Info\s+\d+\s+\d+\s+R")


def fix_common_issues(pdf_bytes: bytes) -> bytes:
    """Apply textual fixes for broken xref tables, streams and encryption entries.

    Returns a new buffer; the input is left untouched.
    """
    content = pdf_bytes.decode("latin-1")

    if "xref\n0 " not in content:
        trailer_pos = content.rfind("trailer")
        if trailer_pos > 0:
            object_count = len(_OBJECT_PATTERN.findall(content)) + 1
            entries = ["0000000000 65535 f"]
            entries.extend("0000000001 00000 n" for _ in range(1, object_count))
            xref_table = f"xref\n0 {object_count}\n" + "\n".join(entries) + "\n"
            content = content[:trailer_pos] + xref_table + content[trailer_pos:]

    content = _EMPTY_STREAM_PATTERN.sub("stream\nendstream", content)
    content = _ENCRYPT_REF_PATTERN.sub("", content)
    content = _ENCRYPT_DICT_PATTERN.sub("", content)
    content = _INFO_REF_PATTERN.sub("", content)
    return content.encode("latin-1")


class GhostscriptRepairer:
    """Rewrites a PDF through Ghostscript's pdfwrite device."""

    def __init__(self, binary: str = "gs", timeout_seconds: int = 60) -> None:
        self._binary = binary
        self._timeout_seconds = timeout_seconds

    def repair(self, input_path: Path, output_path: Path) -> Path:
        """Produce a repaired copy of input_path at output_path.

        Raises:
            RepairError: if Ghostscript fails, times out or writes nothing.
        """
        command = [
            self._binary,
            "-o",
            str(output_path),
            "-sDEVICE=pdfwrite",
            "-dPDFSETTINGS=/prepress",
            "-dNOPAUSE",
            "-dBATCH",
            "-dQUIET",
            str(input_path),
        ]
        Log.debug(f"Running Ghostscript: {' '.join(command)}")
        try:
            subprocess.run(
                command,
                check=True,
                capture_output=True,
                timeout=self._timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise RepairError(f"Ghostscript timed out after {self._timeout_seconds}s") from exc
        except (subprocess.CalledProcessError, OSError) as exc:
            raise RepairError(f"Ghostscript failed: {exc}") from exc

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise RepairError("Ghostscript produced no output")
        return output_path
