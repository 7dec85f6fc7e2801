import argparse
import asyncio
import json
import sys
from pathlib import Path

from labreport.config.settings import Settings
from labreport.logging.logger import Log
from labreport.processor.exceptions import InputRejectedError, ProcessorError
from labreport.processor.models import PathSource
from labreport.processor.processor import build_processor


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> build processor -> summarize one PDF."""
    parser = argparse.ArgumentParser(description="Summarize a lab report PDF.")
    parser.add_argument("pdf", type=Path, help="path to the lab report PDF")
    args = parser.parse_args(argv)

    settings = Settings()
    Log.configure(settings.log_level)

    processor = build_processor(settings)
    try:
        response = asyncio.run(processor.process(PathSource(args.pdf)))
    except InputRejectedError as exc:
        Log.error(f"Rejected ({exc.reason}): {exc}")
        return 2
    except ProcessorError as exc:
        Log.error(f"Processing failed: {exc}")
        return 1

    json.dump(response.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
