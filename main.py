import logging
import re
import sys
from argparse import ArgumentParser

import numpy as np

from accumulators import FileAccumulator
from backing import NumpyBacking, NumpyView
from config import configure_logging
from errors import StridebinError
from sliceable import SliceView


logger = logging.getLogger(__name__)


class InvalidSubscript(Exception):
    pass


def parse_subscript(text):
    """
    Parse ``"3"``, ``"-1"``, ``"2:8:2"`` or ``"::-1"`` into an int or slice
    """
    parts = text.split(":")
    if len(parts) > 3:
        raise InvalidSubscript(f"too many colons in subscript: {text}")
    try:
        fields = [int(p) if p.strip() else None for p in parts]
    except ValueError:
        raise InvalidSubscript(f"subscript fields must be integers: {text}") from None
    if len(fields) == 1:
        if fields[0] is None:
            raise InvalidSubscript("empty subscript")
        return fields[0]
    return slice(*fields)


def load_backing(filename, dtype=None):
    """
    Load a one-dimensional array from a .npy file or a text file of numbers
    """
    if filename.endswith(".npy"):
        array = np.load(filename)
        if dtype is not None:
            array = array.astype(dtype)
    else:
        with open(filename) as infile:
            has_commas = any("," in line.split("#")[0] for line in infile)
        delimiter = "," if has_commas else None
        array = np.loadtxt(
            filename, dtype=dtype or float, delimiter=delimiter, ndmin=1
        )
    return NumpyBacking(array.ravel())


def emit_elements(result, dtype, binary, callback):
    """
    Produce the subscript result as one chunk per element
    """
    elements = result if isinstance(result, SliceView) else [result]
    for element in elements:
        if binary:
            callback(np.asarray(element, dtype=dtype).tobytes())
        else:
            callback(f"{element}\n".encode("utf-8"))


def check_result(backing, subscript, result):
    expected = backing.array[subscript]
    if isinstance(result, NumpyView):
        return result.tolist() == expected.tolist() and np.array_equal(
            result.to_numpy(), expected
        )
    return result == expected.item()


# argparse reads "-3:" as an option flag
NEGATIVE_SLICE = re.compile(r"^-\d*:")


def quote_negative_slices(argv):
    quoted = []
    for arg in argv:
        if NEGATIVE_SLICE.match(arg):
            if quoted and quoted[-1] in ("-s", "--subscript"):
                quoted.pop()
            arg = f"--subscript={arg}"
        quoted.append(arg)
    return quoted


def main(argv=None):
    parser = ArgumentParser(description="slice a one-dimensional data file")
    parser.add_argument("filename")
    parser.add_argument("subscript", nargs="?")
    parser.add_argument("-s", "--subscript", dest="subscript_option", default=None)
    parser.add_argument("-b", "--binary", action="store_true")
    parser.add_argument("-d", "--dtype", default=None)
    parser.add_argument("-c", "--check", action="store_true")
    if argv is None:
        argv = sys.argv[1:]
    args = parser.parse_args(quote_negative_slices(argv))

    configure_logging()

    text = args.subscript if args.subscript_option is None else args.subscript_option
    if text is None:
        parser.error("a subscript is required")
    try:
        subscript = parse_subscript(text)
    except InvalidSubscript as e:
        parser.error(str(e))

    backing = load_backing(args.filename, args.dtype)
    view = backing.view()
    logger.info("loaded %r", backing)

    try:
        result = view[subscript]
    except StridebinError as e:
        print(f"{e} for {text} of {args.filename}", file=sys.stderr)
        return 2

    if args.binary:
        accumulator = FileAccumulator(sys.stdout.buffer, binary=True)
    else:
        accumulator = FileAccumulator(sys.stdout)
    emit_elements(result, backing.array.dtype, args.binary, accumulator.callback)

    if args.check and not check_result(backing, subscript, result):
        print(f"check failed for {text} of {args.filename}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
