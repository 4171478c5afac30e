#!/usr/bin/env python3
# Refresh the local copies of ga.js / urchin.js served when GA_LOCAL_JAVASCRIPT is on
import argparse, logging, os, sys
from typing import List, Optional

import requests

from ga_config import ANALYTICS_URL, ANALYTICS_SSL_URL

log = logging.getLogger("ga_fetch")

GA_JS_URL     = "http://www.google-analytics.com/ga.js"
GA_JS_SSL_URL = "https://ssl.google-analytics.com/ga.js"


def script_urls(ssl=False):
    if ssl:
        return {"ga.js": GA_JS_SSL_URL, "urchin.js": ANALYTICS_SSL_URL}
    return {"ga.js": GA_JS_URL, "urchin.js": ANALYTICS_URL}

def update_local_javascript(dest_dir: str, ssl: bool = False, session=None) -> List[str]:
    http = session or requests
    os.makedirs(dest_dir, exist_ok=True)
    written = []
    for name, url in script_urls(ssl).items():
        r = http.get(url, timeout=10)
        r.raise_for_status()
        path = os.path.join(dest_dir, name)
        with open(path, "wb") as f:
            f.write(r.content)
        log.info("saved %s -> %s (%d bytes)", url, path, len(r.content))
        written.append(path)
    return written

def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Download ga.js and urchin.js for local serving")
    ap.add_argument("dest", nargs="?", default="static",
                    help="directory the host app serves static files from (default: static)")
    ap.add_argument("--ssl", action="store_true", help="fetch from the ssl.google-analytics.com hosts")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="[%(levelname)s] %(message)s")
    try:
        update_local_javascript(args.dest, ssl=args.ssl)
    except requests.RequestException as e:
        log.error("download failed: %s", e)
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
