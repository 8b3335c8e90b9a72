import argparse
import uvicorn
from hashring.config import RingConfig
from hashring.ring_api import create_app

def main():
    p = argparse.ArgumentParser()
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8100)
    p.add_argument("--servers", default="", help="Comma list of server ids, e.g. A,B,C")
    p.add_argument("--modulus", type=int, default=256, help="Size of the position space")
    p.add_argument("--replicas", type=int, default=5, help="Virtual nodes per server")
    p.add_argument("--max-probes", type=int, default=None, help="Extra placement attempts on collision")
    p.add_argument("--debug", action="store_true")
    args = p.parse_args()

    cfg = RingConfig(
        modulus=args.modulus,
        replicas=args.replicas,
        servers=[x.strip() for x in args.servers.split(",") if x.strip()],
        max_probes=args.max_probes,
        debug=args.debug,
        host=args.host,
        port=args.port,
    )
    app = create_app(cfg)
    uvicorn.run(app, host=cfg.host, port=cfg.port)

if __name__ == "__main__":
    main()
