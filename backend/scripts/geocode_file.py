"""Geocode every line of a text file and print one NDJSON record per address.

Usage: python3 geocode_file.py addresses.txt > results.ndjson
"""
import asyncio
import json
import sys

from townmatch.services.geocoding_service import get_address_resolver

BATCH_SIZE = 200


def to_ndjson(result) -> str:
    data = result.to_dict()
    data.pop("input")
    return json.dumps({"query": {"input": result.input}, "result": data}, ensure_ascii=False)


async def main(path: str):
    resolver = get_address_resolver()

    with open(path, encoding="utf-8") as f:
        addresses = [line.strip() for line in f if line.strip()]

    for start in range(0, len(addresses), BATCH_SIZE):
        results = await resolver.resolve_many(addresses[start:start + BATCH_SIZE])
        for result in results:
            print(to_ndjson(result))


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__, file=sys.stderr)
        sys.exit(2)
    asyncio.run(main(sys.argv[1]))
