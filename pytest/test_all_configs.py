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


import glob
import json
import os
import pytest
import subprocess
import sys


THIS_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_DIR = os.path.join(THIS_DIR, "configs")
OVA_SPEC = [sys.executable, "-m", "ova_spec"]


def as_list(value):
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


@pytest.mark.parametrize('get_configs', glob.glob(os.path.join(CONFIG_DIR, "*.yaml")), indirect=True)
@pytest.mark.parametrize('source', ['ovf', 'ova'])
class TestAllConfigs:
    ''' Run ova-spec on the ovf and ova composed from each config '''

    @pytest.fixture(autouse=True)
    def setup_class(self, setup_test, get_configs, source):
        self.config, ovf_file, ova_file, self.ovf = get_configs
        path = ovf_file if source == 'ovf' else ova_file

        process = subprocess.run(OVA_SPEC + ["-v", path], capture_output=True, text=True)
        assert process.returncode == 0, process.stderr
        self.spec = json.loads(process.stdout)


    def test_fixed_choices(self):
        assert self.spec['DiskProvisioning'] == self.spec['AllDiskProvisioningOptions'][0]
        assert self.spec['IPAllocationPolicy'] == self.spec['AllIPAllocationPolicyOptions'][0]
        assert self.spec['IPProtocol'] == self.spec['AllIPProtocolOptions'][0]
        for flag in ['MarkAsTemplate', 'PowerOn', 'InjectOvfEnv', 'WaitForIP']:
            assert self.spec[flag] is False


    def test_deployment_configs(self):
        #DeploymentOptionSection

        if 'configurations' not in self.config:
            assert 'Deployment' not in self.spec
            assert 'AllDeploymentOptions' not in self.spec
            pytest.skip("no 'configurations' in config")

        cfg_configurations = self.config['configurations']
        ovf_configurations = as_list(self.ovf['Envelope']['DeploymentOptionSection']['Configuration'])

        defaults = [c['@ovf:id'] for c in ovf_configurations if c.get('@ovf:default') == "true"]
        others = [c['@ovf:id'] for c in ovf_configurations if c.get('@ovf:default') != "true"]

        assert self.spec['AllDeploymentOptions'] == defaults + others
        assert sorted(self.spec['AllDeploymentOptions']) == sorted(cfg_configurations.keys())
        assert self.spec['Deployment'] == self.spec['AllDeploymentOptions'][0]


    def test_networks_configs(self):
        #NetworkSection

        if 'networks' not in self.config:
            assert 'NetworkMapping' not in self.spec
            pytest.skip("no 'networks' in config")

        cfg_networks = [nw['name'] for nw in self.config['networks'].values()]
        ovf_networks = [nw['@ovf:name'] for nw in as_list(self.ovf['Envelope']['NetworkSection']['Network'])]

        assert cfg_networks == ovf_networks
        assert self.spec['NetworkMapping'] == [{'Name': name, 'Network': ""} for name in cfg_networks]


    def test_annotation_configs(self):
        #AnnotationSection

        annotations = []
        if 'annotation' in self.config:
            annotations.append(self.config['annotation']['text'])
        annotations.extend(a['text'] for a in self.config.get('annotations', []))

        if not annotations:
            assert 'Annotation' not in self.spec
            pytest.skip("no 'annotation' in config")

        assert self.spec['Annotation'] == "".join(annotations)


    def test_product_sections_configs(self):
        #ProductSection

        if 'product_sections' not in self.config:
            assert 'PropertyMapping' not in self.spec
            pytest.skip("no 'product_sections' in config")

        expected = []
        for section in self.config['product_sections']:
            props = section.get('properties', {})
            # properties in categories come after the ones without
            uncategorized = [k for k, v in props.items() if v.get('category') is None]
            categorized = [k for cat in section.get('categories', {}) for k, v in props.items() if v.get('category') == cat]
            for key in uncategorized + categorized:
                prop = props[key]
                if not prop.get('user_configurable'):
                    continue
                full_key = key
                if 'class' in section:
                    full_key = f"{section['class']}.{full_key}"
                if 'instance' in section:
                    full_key = f"{full_key}.{section['instance']}"
                expected.append(full_key)

        mapping = self.spec.get('PropertyMapping', [])
        assert [p['Key'] for p in mapping] == expected

        for p in mapping:
            spec = p['Spec']
            assert spec['UserConfigurable'] is True
            if spec['Type'] == "boolean":
                assert p['Value'] in ["True", "False"]
            else:
                assert p['Value'] == (spec['Default'] or "")


@pytest.mark.parametrize('get_configs', [os.path.join(CONFIG_DIR, "all.yaml")], indirect=True)
def test_all_values(setup_test, get_configs):
    config, ovf_file, ova_file, ovf = get_configs

    process = subprocess.run(OVA_SPEC + [ova_file], capture_output=True, text=True)
    assert process.returncode == 0, process.stderr
    spec = json.loads(process.stdout)

    assert spec == {
        'Deployment': "medium",
        'DiskProvisioning': "flat",
        'IPAllocationPolicy': "dhcpPolicy",
        'IPProtocol': "IPv4",
        'PropertyMapping': [
            {'Key': "hostname", 'Value': "photon"},
            {'Key': "debug", 'Value': "True"},
            {'Key': "Net.ip.0", 'Value': ""},
            {'Key': "Net.dhcp.0", 'Value': "True"}
        ],
        'NetworkMapping': [
            {'Name': "VM Network", 'Network': ""},
            {'Name': "Mgmt", 'Network': ""}
        ],
        'Annotation': "Photon OS appliance. Second annotation.",
        'MarkAsTemplate': False,
        'PowerOn': False,
        'InjectOvfEnv': False,
        'WaitForIP': False,
        'Name': None
    }
