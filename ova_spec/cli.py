# Copyright (c) 2025 Broadcom.  All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the “License”); you may not
# use this file except in compliance with the License.  You may obtain a copy of
# the License at:
#
#        http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software distributed
# under the License is distributed on an “AS IS” BASIS, without warranties or
# conditions of any kind, EITHER EXPRESS OR IMPLIED.  See the License for the
# specific language governing permissions and limitations under the License.

import getopt
import sys

from .archive import ArchiveError, read_ovf
from .envelope import EnvelopeParseError, parse_envelope
from .output import OUTPUT_FORMATS, dumps, format_from_name, write_options
from .spec import ValidationError, build_spec, load_options


APP_NAME = "ova-spec"


def usage():
    print(f"Usage: {APP_NAME} [-v] [-f json|yaml] [-o <output file>] [-t <seconds>] [-q] [-h] [PATH_TO_OVF_OR_OVA]")
    print(f"       {APP_NAME} -c|--check <options file>")
    print("")
    print("Options:")
    print("  -v, --verbose               list all legal choices and full property metadata")
    print("  -f, --format json|yaml      output format (default json)")
    print("  -o, --output-file <file>    write the spec to a file instead of stdout")
    print("  -t, --timeout <seconds>     timeout for remote (http/https) sources")
    print("  -c, --check <file>          check an edited options file and exit")
    print("  -q                          quiet mode")
    print("  -h                          print help")
    print("")
    print("The source may be an .ovf file, an .ova file, or an http(s) URL to either.")
    print("Without a source, a spec with default values is printed.")
    print("")
    print("Specifying the format is optional if the output file name ends with '.json', '.yaml' or '.yml'")
    print("")
    print("Example usage:")
    print(f"  {APP_NAME} -v photon.ova")
    print(f"  {APP_NAME} -o photon.yaml photon.ova")
    print(f"  {APP_NAME} --check photon.yaml")


def status(msg, quiet=False):
    # stdout is reserved for the spec itself
    if not quiet:
        print(msg, file=sys.stderr)


def error(msg, code):
    print(f"{APP_NAME}: {msg}", file=sys.stderr)
    sys.exit(code)


def main(argv=None):
    output_file = None
    output_format = None
    check_file = None
    timeout = None
    do_verbose = False
    do_quiet = False

    if argv is None:
        argv = sys.argv[1:]

    try:
        opts, args = getopt.gnu_getopt(argv, 'c:f:ho:qt:v', longopts=['check=', 'format=', 'output-file=', 'timeout=', 'verbose'])
    except getopt.GetoptError:
        print("invalid option")
        sys.exit(2)

    for o, a in opts:
        if o in ['-c', '--check']:
            check_file = a
        elif o in ['-f', '--format']:
            output_format = a
        elif o in ['-o', '--output-file']:
            output_file = a
        elif o in ['-t', '--timeout']:
            try:
                timeout = float(a)
            except ValueError:
                error(f"invalid timeout '{a}'", 2)
        elif o in ['-v', '--verbose']:
            do_verbose = True
        elif o in ['-q']:
            do_quiet = True
        elif o in ['-h']:
            usage()
            sys.exit(0)

    if check_file is not None:
        try:
            load_options(check_file)
        except (OSError, ValidationError) as e:
            error(e, 1)
        status(f"'{check_file}' is valid", do_quiet)
        return 0

    if len(args) > 1:
        error("too many arguments", 2)
    path = args[0] if args else None

    if output_format is None and output_file is not None:
        output_format = format_from_name(output_file)
    if output_format is None:
        output_format = "json"
    if output_format not in OUTPUT_FORMATS:
        error(f"invalid output format '{output_format}'", 2)

    envelope = None
    try:
        if path is not None:
            envelope = parse_envelope(read_ovf(path, timeout=timeout))
    except (ArchiveError, EnvelopeParseError) as e:
        error(e, 1)

    options = build_spec(envelope, verbose=do_verbose)

    if output_file is None:
        sys.stdout.write(dumps(options, output_format))
    else:
        status(f"creating '{output_file}' with format '{output_format}' from '{path or 'defaults'}'", do_quiet)
        try:
            write_options(options, output_format, output_file)
        except OSError as e:
            error(e, 1)
        status("done.", do_quiet)

    return 0
