import sys
import time
from argparse import ArgumentParser
from dataclasses import replace

from mandelgrid import verbosity

_VERBOSE_FLAGS = {"--verbose", "-v"}
verbosity.configure(any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:]))

from mandelgrid import (
    MandelgridError,
    compute,
    load_or_create,
    write_csv,
)
from mandelgrid.config import CONFIG_FILE_PATH
from mandelgrid.export import OUTPUT_FILE_PATH
from mandelgrid.grid import BACKENDS, EXECUTORS
from mandelgrid.verbosity import log


def build_parser():
    parser = ArgumentParser(description='Sample the Mandelbrot escape-time magnitude over a grid of the complex plane.')

    parser.add_argument('--config', type=str,
                        dest='config', help='TOML file with the run parameters; created with defaults when missing or unreadable',
                        metavar='CONFIG', default=str(CONFIG_FILE_PATH))

    parser.add_argument('--output', type=str,
                        dest='output', help='destination of the re,im,value CSV dataset',
                        metavar='OUTPUT', default=str(OUTPUT_FILE_PATH))

    parser.add_argument('--threads', type=int,
                        dest='threads', help='override the number of workers from the configuration file',
                        metavar='THREADS', default=None)

    parser.add_argument('--backend', choices=BACKENDS, default=None,
                        help='override the evaluation backend: "scalar" evaluates point by point, "tensor" uses TensorFlow batches.')

    parser.add_argument('--executor', choices=EXECUTORS, default=None,
                        help='override how workers run: OS threads or worker processes.')

    parser.add_argument('--anchored-grid', dest='anchored', action='store_true',
                        help='start sampling exactly at re_min/im_min instead of one delta past them.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics.')

    return parser


def resolve_parameters(opt):
    params = load_or_create(opt.config)
    overrides = {}
    if opt.threads is not None:
        overrides['worker_count'] = opt.threads
    if opt.backend is not None:
        overrides['backend'] = opt.backend
    if opt.executor is not None:
        overrides['executor'] = opt.executor
    return replace(params, **overrides) if overrides else params


def main():
    parser = build_parser()
    opt = parser.parse_args()
    verbosity.configure(opt.verbose)

    start = time.perf_counter()
    try:
        params = resolve_parameters(opt)
        log(f"Sampling {params.grid.sample_count()} points with {params.worker_count} {params.executor} worker(s), backend {params.backend}")
        samples = compute(params, anchored=opt.anchored)
        print("Exporting...")
        path = write_csv(samples, opt.output)
    except MandelgridError as exc:
        raise SystemExit(f"error: {exc}") from exc

    log(f"Wrote {len(samples)} rows to {path}")
    print(f"took: {int((time.perf_counter() - start) * 1000)}ms")


if __name__ == '__main__':
    main()
