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

import yaml


# first entry of each tuple is the default
ALL_DISK_PROVISIONING_OPTIONS = (
    "flat",
    "monolithicSparse",
    "monolithicFlat",
    "twoGbMaxExtentSparse",
    "twoGbMaxExtentFlat",
    "thin",
    "thick",
    "seSparse",
    "eagerZeroedThick",
    "sparse",
)

ALL_IP_ALLOCATION_POLICY_OPTIONS = (
    "dhcpPolicy",
    "transientPolicy",
    "fixedPolicy",
    "fixedAllocatedPolicy",
)

ALL_IP_PROTOCOL_OPTIONS = (
    "IPv4",
    "IPv6",
)

FLAGS = {
    'MarkAsTemplate': 'mark_as_template',
    'PowerOn': 'power_on',
    'InjectOvfEnv': 'inject_ovf_env',
    'WaitForIP': 'wait_for_ip'
}


class ValidationError(Exception):
    pass


def check_string(d, key, required=False):
    if key not in d or d[key] is None:
        if required:
            raise ValidationError(f"missing '{key}'")
        return None
    if not isinstance(d[key], str):
        raise ValidationError(f"{key} must be a string, not {type(d[key]).__name__} '{d[key]}'")
    return d[key]


def check_list(d, key):
    # entries must be mappings, their values are checked by the caller
    entries = d.get(key) or []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ValidationError(f"{key} must be a list of mappings")
    return entries


class KeyValue(object):

    def __init__(self, key, value):
        self.key = key
        self.value = value


    def to_dict(self):
        return {'Key': self.key, 'Value': self.value}


class Property(KeyValue):

    def __init__(self, key, value, spec=None):
        super().__init__(key, value)
        # reference to the envelope.Property it was derived from (verbose only)
        self.spec = spec


    def to_dict(self):
        d = super().to_dict()
        if self.spec is not None:
            d['Spec'] = self.spec.to_dict()
        return d


class Network(object):

    def __init__(self, name, network=""):
        self.name = name
        self.network = network


    def to_dict(self):
        return {'Name': self.name, 'Network': self.network}


class Options(object):
    """
    Import spec for a single OVF/OVA package.

    The selected values (disk provisioning, IP allocation policy, IP
    protocol and deployment) are always members of their ALL_* universe.
    The all_* attributes are only set in verbose mode; deployment and
    all_deployment_options stay None if the package declares no
    configurations.
    """

    def __init__(self,
                 disk_provisioning=ALL_DISK_PROVISIONING_OPTIONS[0],
                 ip_allocation_policy=ALL_IP_ALLOCATION_POLICY_OPTIONS[0],
                 ip_protocol=ALL_IP_PROTOCOL_OPTIONS[0],
                 deployment=None,
                 property_mapping=(), network_mapping=(),
                 annotation="",
                 mark_as_template=False, power_on=False,
                 inject_ovf_env=False, wait_for_ip=False,
                 name=None,
                 all_deployment_options=None,
                 all_disk_provisioning_options=None,
                 all_ip_allocation_policy_options=None,
                 all_ip_protocol_options=None):
        self.disk_provisioning = disk_provisioning
        self.ip_allocation_policy = ip_allocation_policy
        self.ip_protocol = ip_protocol
        self.deployment = deployment
        self.property_mapping = tuple(property_mapping)
        self.network_mapping = tuple(network_mapping)
        self.annotation = annotation
        self.mark_as_template = mark_as_template
        self.power_on = power_on
        self.inject_ovf_env = inject_ovf_env
        self.wait_for_ip = wait_for_ip
        self.name = name
        self.all_deployment_options = all_deployment_options
        self.all_disk_provisioning_options = all_disk_provisioning_options
        self.all_ip_allocation_policy_options = all_ip_allocation_policy_options
        self.all_ip_protocol_options = all_ip_protocol_options


    def __eq__(self, other):
        if not isinstance(other, Options):
            return NotImplemented
        return self.to_dict() == other.to_dict()


    def to_dict(self):
        d = {}

        # optional keys are omitted when empty
        def put(key, value):
            if value:
                d[key] = list(value) if isinstance(value, tuple) else value

        put('AllDeploymentOptions', self.all_deployment_options)
        put('Deployment', self.deployment)
        put('AllDiskProvisioningOptions', self.all_disk_provisioning_options)
        d['DiskProvisioning'] = self.disk_provisioning
        put('AllIPAllocationPolicyOptions', self.all_ip_allocation_policy_options)
        d['IPAllocationPolicy'] = self.ip_allocation_policy
        put('AllIPProtocolOptions', self.all_ip_protocol_options)
        d['IPProtocol'] = self.ip_protocol
        put('PropertyMapping', [p.to_dict() for p in self.property_mapping])
        put('NetworkMapping', [n.to_dict() for n in self.network_mapping])
        put('Annotation', self.annotation)
        for key, attr in FLAGS.items():
            d[key] = getattr(self, attr)
        d['Name'] = self.name

        return d


    @classmethod
    def from_dict(cls, d):
        if not isinstance(d, dict):
            raise ValidationError("options must be a mapping")

        kwargs = {}

        for key, attr, universe in [('DiskProvisioning', 'disk_provisioning', ALL_DISK_PROVISIONING_OPTIONS),
                                    ('IPAllocationPolicy', 'ip_allocation_policy', ALL_IP_ALLOCATION_POLICY_OPTIONS),
                                    ('IPProtocol', 'ip_protocol', ALL_IP_PROTOCOL_OPTIONS)]:
            if key in d:
                if d[key] not in universe:
                    raise ValidationError(f"{key} '{d[key]}' is invalid, must be one of {', '.join(universe)}")
                kwargs[attr] = d[key]

        all_deployments = d.get('AllDeploymentOptions')
        deployment = check_string(d, 'Deployment')
        if all_deployments is not None:
            if not isinstance(all_deployments, list) or not all(isinstance(c, str) for c in all_deployments):
                raise ValidationError("AllDeploymentOptions must be a list of strings")
        if all_deployments is not None and deployment is not None and deployment not in all_deployments:
            raise ValidationError(f"Deployment '{deployment}' is not one of {', '.join(all_deployments)}")
        kwargs['deployment'] = deployment
        kwargs['all_deployment_options'] = all_deployments

        for key, attr in FLAGS.items():
            if key in d:
                if type(d[key]) is not bool:
                    raise ValidationError(f"{key} must be boolean")
                kwargs[attr] = d[key]

        kwargs['property_mapping'] = [Property(check_string(p, 'Key', required=True), check_string(p, 'Value', required=True))
                                      for p in check_list(d, 'PropertyMapping')]
        kwargs['network_mapping'] = [Network(check_string(n, 'Name', required=True), check_string(n, 'Network', required=True))
                                     for n in check_list(d, 'NetworkMapping')]

        kwargs['annotation'] = check_string(d, 'Annotation') or ""
        kwargs['name'] = check_string(d, 'Name')

        return cls(**kwargs)


def is_separator(c):
    # ASCII letters, digits and '_' join words, other ASCII characters split
    # them; outside ASCII only white space splits, as in Go's strings.Title
    if ord(c) < 0x80:
        return not (c.isalnum() or c == "_")
    return c.isspace()


def title(value):
    # upper-cases the first letter of every word and leaves the rest alone,
    # so str.title() would not do ("tRUE" must stay "TRUE")
    chars = []
    prev = " "
    for c in value:
        if is_separator(prev):
            # title case of the single letter, so a digraph like ǆ becomes ǅ
            # and a letter without a one character mapping stays as it is
            t = c.title()
            if len(t) == 1:
                c = t
        chars.append(c)
        prev = c
    return "".join(chars)


def property_key(section, prop):
    # [class "."] key ["." instance], OVF spec section 9.5.1
    key = prop.key
    if section.class_ is not None:
        key = f"{section.class_}.{key}"
    if section.instance is not None:
        key = f"{key}.{section.instance}"
    return key


def map_properties(envelope, verbose=False):
    if envelope is None or envelope.virtual_system is None:
        return []

    mapping = []
    for section in envelope.virtual_system.product:
        for prop in section.property:
            if not prop.user_configurable:
                continue

            value = prop.default if prop.default is not None else ""

            # vSphere only accepts True/False for boolean values
            if prop.type == "boolean":
                value = title(value)

            mapping.append(Property(property_key(section, prop), value,
                                    spec=prop if verbose else None))

    return mapping


def deployment_options(envelope):
    if envelope is None or envelope.deployment_option is None:
        return None

    configurations = envelope.deployment_option.configuration
    if not configurations:
        return None

    # defaults first, both partitions keep document order
    options = [c.id for c in configurations if c.default]
    options += [c.id for c in configurations if not c.default]
    return options


def build_spec(envelope=None, verbose=False):
    deployments = deployment_options(envelope)

    annotation = ""
    if envelope is not None and envelope.virtual_system is not None:
        for a in envelope.virtual_system.annotation:
            annotation += a.annotation

    network_mapping = []
    if envelope is not None and envelope.network is not None:
        for net in envelope.network.networks:
            network_mapping.append(Network(net.name, ""))

    options = Options(
        disk_provisioning=ALL_DISK_PROVISIONING_OPTIONS[0],
        ip_allocation_policy=ALL_IP_ALLOCATION_POLICY_OPTIONS[0],
        ip_protocol=ALL_IP_PROTOCOL_OPTIONS[0],
        deployment=deployments[0] if deployments else None,
        property_mapping=map_properties(envelope, verbose=verbose),
        network_mapping=network_mapping,
        annotation=annotation,
        mark_as_template=False,
        power_on=False,
        inject_ovf_env=False,
        wait_for_ip=False,
        all_deployment_options=tuple(deployments) if verbose and deployments else None,
        all_disk_provisioning_options=ALL_DISK_PROVISIONING_OPTIONS if verbose else None,
        all_ip_allocation_policy_options=ALL_IP_ALLOCATION_POLICY_OPTIONS if verbose else None,
        all_ip_protocol_options=ALL_IP_PROTOCOL_OPTIONS if verbose else None)

    return options


def load_options(filename):
    # json is a subset of yaml, so this reads both. Reading bytes lets
    # yaml report undecodable input as a YAMLError.
    with open(filename, "rb") as f:
        try:
            d = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"failed to parse '{filename}': {e}") from e
    return Options.from_dict(d)
