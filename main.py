from core.attempters import ATTEMPTERS
from core.brute import AuthBrute, Workers
from core.options import BruteOptions
from utils.cli import load_args, load_config, parse_target
from utils.reporter import Reporter, proto_from_fullname, setup_logging


def make_attempter_factory(args):
    if args.proto == "hash":
        return lambda host, port: ATTEMPTERS["hash"](host)

    def factory(host, port):
        return ATTEMPTERS["http"](host, port, path=args.path, ssl=args.ssl, timeout=args.timeout)
    return factory


def load_targets(args):
    # Hash files stand in for a host; they have no port
    if args.proto == "hash":
        return [(path, 0) for path in args.targets]
    default_port = 443 if args.ssl else 80
    return [parse_target(target, default_port) for target in args.targets]


def main(argv=None):
    # Load configuration from YAML file
    args = load_args(load_config(), argv)
    setup_logging(verbose=not args.quiet)

    options = BruteOptions.from_args(args)
    proto = proto_from_fullname(ATTEMPTERS[args.proto].name)

    brute = AuthBrute(options, proto=proto)
    reporter = Reporter(options, proto=proto)
    workers = Workers(brute, reporter, max_workers=args.threads)

    results = workers.run(
        load_targets(args),
        make_attempter_factory(args),
        noconn=args.proto == "hash",
    )
    return 0 if any(result.successes for result in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
