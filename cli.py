from dotenv import load_dotenv
load_dotenv()

import argparse
import sys

import httpx

from handgrade.client import DisplayState, RelayClient, from_clipboard, from_path, from_stream, ingest
from handgrade.errors import HandgradeError
from handgrade.settings import settings


def _print_section(title, content, finished):
    print(f"== {title} ==")
    if content.strip():
        print(content.strip())
    elif finished:
        print("No text was found in that image.")
    print()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Grade a handwritten algebra answer with a hosted multimodal model")
    parser.add_argument("image", nargs="?", help="Path to an image file, or '-' to read it from stdin")
    parser.add_argument("--clipboard", action="store_true", help="Read the image from the system clipboard")
    parser.add_argument("--api-url", type=str, default=str(settings.API_URL), help="URL of the /api/completion endpoint")
    parser.add_argument("--raw", action="store_true", help="Print the response stream as it arrives instead of the two sections")
    args = parser.parse_args(argv)

    if not args.clipboard and not args.image:
        parser.error("an image path, '-' or --clipboard is required")

    try:
        if args.clipboard:
            upload = from_clipboard()
        elif args.image == "-":
            upload = from_stream(sys.stdin.buffer)
        else:
            upload = from_path(args.image)
        data_uri = ingest(upload)
    except FileNotFoundError as e:
        print(f"Image file not found: {e.filename}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Could not read image file {e.filename}: {e.strerror}", file=sys.stderr)
        return 1
    except HandgradeError as e:
        print(e.message, file=sys.stderr)
        return 1

    client = RelayClient(args.api_url)
    print(f"Sending request to {args.api_url}...\n", file=sys.stderr)
    try:
        if args.raw:
            for chunk in client.stream(data_uri):
                print(chunk, end="", flush=True)
            print()
            return 0
        state = client.grade(data_uri)
    except HandgradeError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(f"Error: could not reach {args.api_url}: {e}", file=sys.stderr)
        return 1

    _print_section("Description", state.description, state.finished)
    _print_section("Text", state.text, state.finished)
    return 0


if __name__ == "__main__":
    sys.exit(main())
