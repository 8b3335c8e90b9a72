import argparse
from hashring.config import RingConfig
from hashring.errors import RingError
from hashring.logging_setup import setup_logging

def main(argv=None):
    p = argparse.ArgumentParser(description="Print which server owns each key")
    p.add_argument("--servers", default="A,B,C")
    p.add_argument("--modulus", type=int, default=256)
    p.add_argument("--replicas", type=int, default=5)
    p.add_argument("--show-ring", action="store_true", help="Print position,server for every virtual node")
    p.add_argument("--debug", action="store_true")
    p.add_argument("keys", nargs="*", default=["hello", "world", "something", "something else"])
    args = p.parse_args(argv)

    setup_logging(args.debug)
    cfg = RingConfig(
        modulus=args.modulus,
        replicas=args.replicas,
        servers=[x.strip() for x in args.servers.split(",") if x.strip()],
    )
    if not cfg.servers:
        p.error("at least one server is required")
    try:
        ring = cfg.build_ring()
    except (RingError, ValueError) as e:
        p.error(str(e))

    if args.show_ring:
        print(ring, end="")
    for key in args.keys:
        print(f"key `{key}` goes into server `{ring.lookup(key)}`")

if __name__ == "__main__":
    main()
