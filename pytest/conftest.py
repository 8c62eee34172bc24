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


import os
import pytest
import shutil
import yaml
import xmltodict

import ovf_compose


THIS_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.path.join(THIS_DIR, "configs")

WORK_DIR = os.path.join(os.getcwd(), "pytest-configs")

PARAMS = {
    'debug': True
}


@pytest.fixture(scope='module')
def setup_test(request):
    global WORK_DIR
    if hasattr(request, 'param'):
        WORK_DIR = request.param

    os.makedirs(WORK_DIR, exist_ok=True)

    yield WORK_DIR
    shutil.rmtree(WORK_DIR)
    WORK_DIR = os.path.join(os.getcwd(), "pytest-configs")


def yaml_param(loader, node):
    params = loader.app_params
    default = None
    key = node.value

    assert type(key) is str, f"param name must be a string"

    if '=' in key:
        key, default = [t.strip() for t in key.split('=', maxsplit=1)]
        default = yaml.safe_load(default)
    value = params.get(key, default)

    assert value is not None, f"no param set for '{key}', and there is no default"

    return value


def load_config(in_yaml, params=PARAMS):
    with open(in_yaml) as f:
        yaml_loader = yaml.SafeLoader
        yaml_loader.app_params = params
        yaml.add_constructor("!param", yaml_param, Loader=yaml_loader)
        return yaml.load(f, Loader=yaml_loader)


@pytest.fixture(scope='module')
def get_configs(request, setup_test):
    """
    Compose an OVF descriptor and an OVA from a yaml config.
    Yields the config, the paths of both files and the descriptor
    as parsed by xmltodict.
    """
    in_yaml = request.param
    basename = os.path.basename(in_yaml.rsplit(".", 1)[0])
    out_ovf = os.path.join(setup_test, f"{basename}.ovf")
    out_ova = os.path.join(setup_test, f"{basename}.ova")

    config = load_config(in_yaml)
    ovf_compose.write_ovf(config, out_ovf)
    ovf_compose.write_ova(out_ovf, out_ova)

    with open(out_ovf) as f:
        ovf = xmltodict.parse(f.read())

    yield config, out_ovf, out_ova, ovf
