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


import json
import yaml


OUTPUT_FORMATS = ['json', 'yaml']


def format_from_name(filename):
    if filename.endswith(".json"):
        return "json"
    elif filename.endswith(".yaml") or filename.endswith(".yml"):
        return "yaml"
    return None


def dumps(options, output_format="json"):
    d = options.to_dict()
    if output_format == "json":
        return json.dumps(d, indent=2) + "\n"
    elif output_format == "yaml":
        return yaml.safe_dump(d, sort_keys=False, default_flow_style=False)
    raise ValueError(f"invalid output format '{output_format}'")


def write_options(options, output_format="json", output_file=None):
    text = dumps(options, output_format)
    with open(output_file, "wt") as f:
        f.write(text)
