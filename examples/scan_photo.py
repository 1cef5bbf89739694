"""Basic photo scan.

Usage:
    python examples/scan_photo.py <access-token> bottle.jpg
"""

import base64
import mimetypes
import sys
from pathlib import Path

from recyclebud_scan import RecycleBudError, WasteScanner

if len(sys.argv) != 3:
    sys.exit(__doc__)

token, photo = sys.argv[1], Path(sys.argv[2])
mime, _ = mimetypes.guess_type(photo.name)
image = f"data:{mime or 'image/jpeg'};base64," + base64.b64encode(photo.read_bytes()).decode()

scanner = WasteScanner()  # loads LOVABLE_API_KEY, SUPABASE_URL, SUPABASE_ANON_KEY

try:
    result = scanner.scan(credential=token, image=image)
except RecycleBudError as e:
    print(f"Scan failed ({e.kind.value}, HTTP {e.status_code}): {e}")
    sys.exit(1)

print(f"Waste type:  {result.waste_type}")
print(f"Confidence:  {result.confidence}%")
print(f"Recyclable:  {result.recyclable}")
print(f"Points:      {result.base_points}")
print(f"Description: {result.description}")
print(f"Guide:\n{result.recycling_guide}")
