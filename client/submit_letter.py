"""Command-line client for manual testing of the letter service."""

from __future__ import annotations

import argparse
import asyncio
import logging
import pathlib
import time

import httpx

DEFAULT_URL = "http://127.0.0.1:8000"


async def run_client(
    base_url: str,
    text: str | None,
    document: pathlib.Path | None,
    mode: str,
    context: str | None,
    output: pathlib.Path | None,
    timeout: float,
) -> None:
    """Optionally upload a document, then submit its text and print the result."""

    logger = logging.getLogger("submit_letter")
    start = time.perf_counter()

    async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
        if document is not None:
            response = await client.post(
                "/api/upload-file",
                files={"file": (document.name, document.read_bytes())},
            )
            if response.status_code != 200:
                logger.error("Upload failed (%d): %s", response.status_code, response.text)
                raise SystemExit(1)
            text = response.json()["text"]
            logger.info("Extracted %d characters from %s", len(text), document.name)

        payload = {"text": text, "type": mode}
        if context:
            payload["additionalInfo"] = context

        response = await client.post("/api/process-text", json=payload)
        data = response.json()
        if not data.get("success"):
            logger.error("Processing failed (%d): %s", response.status_code, data.get("error"))
            raise SystemExit(1)

    elapsed = time.perf_counter() - start
    logger.info("Received %d characters in %.2fs", len(data["processedText"]), elapsed)

    if output:
        output.write_text(data["processedText"], encoding="utf-8")
        logger.info("Result written to %s", output)
    else:
        print(data["processedText"])


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Test client for the complaint letter service.")
    parser.add_argument("--url", default=DEFAULT_URL, help="Service base URL (default: %(default)s)")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--text", help="Letter text to process.")
    source.add_argument("--file", type=pathlib.Path, help="PDF or DOCX letter to upload first.")
    parser.add_argument("--mode", choices=["rewrite", "response"], default="rewrite")
    parser.add_argument("--context", help="Additional information to incorporate.")
    parser.add_argument("--save", type=pathlib.Path, help="Optional output file.")
    parser.add_argument(
        "--timeout", type=float, default=120.0, help="Seconds to wait for the service."
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        asyncio.run(
            run_client(args.url, args.text, args.file, args.mode, args.context, args.save, args.timeout)
        )
    except KeyboardInterrupt:  # pragma: no cover - manual usage only
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
