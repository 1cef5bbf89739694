"""Async scanning patterns.

Classifies several photos concurrently for one signed-in user. Each scan is
independent: one failing (rate limit, bad file) does not affect the others.

Usage:
    python examples/async_scanning.py <access-token> photo1.jpg photo2.png ...
"""

import asyncio
import base64
import mimetypes
import sys
from pathlib import Path

from recyclebud_scan import RecycleBudError, WasteScanner


def to_data_url(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    encoded = base64.b64encode(path.read_bytes()).decode()
    return f"data:{mime or 'image/jpeg'};base64,{encoded}"


async def main(token: str, paths: list[Path]) -> None:
    async with WasteScanner() as scanner:
        print(f"Scanning {len(paths)} photos concurrently...\n")

        tasks = [
            scanner.scan_async(credential=token, image=to_data_url(p))
            for p in paths
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        for path, result in zip(paths, results):
            if isinstance(result, RecycleBudError):
                print(f"  ERROR ({result.kind.value}): {path.name} → {result}")
            elif isinstance(result, Exception):
                raise result
            else:
                status = "RECYCLABLE" if result.recyclable else "NOT RECYCLABLE"
                print(f"  {status}: {path.name} → {result.waste_type} ({result.confidence}%)")
                print(f"         ↳ +{result.base_points} points")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        sys.exit(__doc__)
    asyncio.run(main(sys.argv[1], [Path(p) for p in sys.argv[2:]]))
