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

from lxml import etree as ET


NS_OVF = "http://schemas.dmtf.org/ovf/envelope/1"


class EnvelopeParseError(Exception):
    pass


def local_name(node):
    return ET.QName(node).localname


def xml_attr(elem, name, default=None):
    # ovf:key, key and any other prefix all resolve to 'key'
    for k, v in elem.attrib.items():
        if local_name(k) == name:
            return v
    return default


def xml_bool(elem, name, default=None):
    value = xml_attr(elem, name)
    if value is None:
        return default
    value = value.strip()
    if value in ["1", "t", "T", "true", "True", "TRUE"]:
        return True
    if value in ["0", "f", "F", "false", "False", "FALSE"]:
        return False
    raise EnvelopeParseError(f"invalid boolean value '{value}' for attribute '{name}' of <{local_name(elem)}>")


def xml_children(elem, name):
    return [child for child in elem if isinstance(child.tag, str) and local_name(child) == name]


def xml_child(elem, name):
    children = xml_children(elem, name)
    return children[0] if children else None


def xml_child_text(elem, name):
    child = xml_child(elem, name)
    if child is None:
        return None
    return child.text or ""


class PropertyValue(object):

    def __init__(self, value, configuration=None):
        self.value = value
        self.configuration = configuration


    @classmethod
    def from_xml(cls, elem):
        return cls(xml_attr(elem, 'value', ""), xml_attr(elem, 'configuration'))


    def to_dict(self):
        return {
            'Value': self.value,
            'Configuration': self.configuration
        }


class Property(object):

    def __init__(self, key, type,
                 qualifiers=None,
                 user_configurable=None,
                 default=None,
                 password=None,
                 label=None, description=None,
                 values=None, category=None):
        self.key = key
        self.type = type
        self.qualifiers = qualifiers
        self.user_configurable = user_configurable
        self.default = default
        self.password = password
        self.label = label
        self.description = description
        self.values = values or []
        self.category = category


    @classmethod
    def from_xml(cls, elem, category=None):
        key = xml_attr(elem, 'key')
        if key is None:
            raise EnvelopeParseError("<Property> is missing the 'key' attribute")
        return cls(key, xml_attr(elem, 'type', ""),
                   qualifiers=xml_attr(elem, 'qualifiers'),
                   user_configurable=xml_bool(elem, 'userConfigurable'),
                   default=xml_attr(elem, 'value'),
                   password=xml_bool(elem, 'password'),
                   label=xml_child_text(elem, 'Label'),
                   description=xml_child_text(elem, 'Description'),
                   values=[PropertyValue.from_xml(v) for v in xml_children(elem, 'Value')],
                   category=category)


    def to_dict(self):
        d = {
            'Key': self.key,
            'Type': self.type,
            'Qualifiers': self.qualifiers,
            'UserConfigurable': self.user_configurable,
            'Default': self.default,
            'Password': self.password,
            'Label': self.label,
            'Description': self.description,
            'Values': [v.to_dict() for v in self.values] or None
        }
        if self.category is not None:
            d['Category'] = self.category
        return d


class ProductSection(object):
    # snake case attribute -> element name in XML
    text_keys = {
        'info': 'Info',
        'product': 'Product',
        'vendor': 'Vendor',
        'version': 'Version',
        'full_version': 'FullVersion',
        'product_url': 'ProductUrl',
        'vendor_url': 'VendorUrl',
        'app_url': 'AppUrl'
    }

    def __init__(self, class_=None, instance=None, required=None, properties=None, categories=None, **kwargs):
        self.class_ = class_
        self.instance = instance
        self.required = required
        self.property = properties or []
        self.category = categories or []
        for k in self.text_keys:
            setattr(self, k, kwargs.get(k, None))


    @classmethod
    def from_xml(cls, elem):
        properties = []
        categories = []
        category = None
        # a Category element applies to all properties that follow it
        for child in elem:
            if not isinstance(child.tag, str):
                continue
            name = local_name(child)
            if name == 'Category':
                category = child.text or ""
                categories.append(category)
            elif name == 'Property':
                properties.append(Property.from_xml(child, category=category))

        texts = {k: xml_child_text(elem, v) for k, v in cls.text_keys.items()}
        return cls(class_=xml_attr(elem, 'class'),
                   instance=xml_attr(elem, 'instance'),
                   required=xml_bool(elem, 'required'),
                   properties=properties,
                   categories=categories,
                   **texts)


class AnnotationSection(object):

    def __init__(self, annotation, info=None):
        self.annotation = annotation
        self.info = info


    @classmethod
    def from_xml(cls, elem):
        return cls(xml_child_text(elem, 'Annotation') or "", info=xml_child_text(elem, 'Info'))


class VirtualSystem(object):

    def __init__(self, id, info=None, name=None, product=None, annotation=None):
        self.id = id
        self.info = info
        self.name = name
        self.product = product or []
        self.annotation = annotation or []


    @classmethod
    def from_xml(cls, elem):
        return cls(xml_attr(elem, 'id'),
                   info=xml_child_text(elem, 'Info'),
                   name=xml_child_text(elem, 'Name'),
                   product=[ProductSection.from_xml(p) for p in xml_children(elem, 'ProductSection')],
                   annotation=[AnnotationSection.from_xml(a) for a in xml_children(elem, 'AnnotationSection')])


class Network(object):

    def __init__(self, name, description=None):
        self.name = name
        self.description = description


    @classmethod
    def from_xml(cls, elem):
        name = xml_attr(elem, 'name')
        if name is None:
            raise EnvelopeParseError("<Network> is missing the 'name' attribute")
        return cls(name, xml_child_text(elem, 'Description'))


class NetworkSection(object):

    def __init__(self, networks, info=None):
        self.networks = networks
        self.info = info


    @classmethod
    def from_xml(cls, elem):
        return cls([Network.from_xml(n) for n in xml_children(elem, 'Network')],
                   info=xml_child_text(elem, 'Info'))


class Configuration(object):

    def __init__(self, id, default=None, label=None, description=None):
        self.id = id
        self.default = default
        self.label = label
        self.description = description


    @classmethod
    def from_xml(cls, elem):
        id = xml_attr(elem, 'id')
        if id is None:
            raise EnvelopeParseError("<Configuration> is missing the 'id' attribute")
        return cls(id,
                   default=xml_bool(elem, 'default'),
                   label=xml_child_text(elem, 'Label'),
                   description=xml_child_text(elem, 'Description'))


class DeploymentOptionSection(object):

    def __init__(self, configuration, info=None):
        self.configuration = configuration
        self.info = info


    @classmethod
    def from_xml(cls, elem):
        return cls([Configuration.from_xml(c) for c in xml_children(elem, 'Configuration')],
                   info=xml_child_text(elem, 'Info'))


class Envelope(object):
    """
    Parsed OVF descriptor, reduced to the sections needed to build an
    import spec. Every section is optional and None when the descriptor
    does not carry it.
    """

    def __init__(self, virtual_system=None, network=None, deployment_option=None):
        self.virtual_system = virtual_system
        self.network = network
        self.deployment_option = deployment_option


    @classmethod
    def from_xml(cls, root):
        if local_name(root) != 'Envelope':
            raise EnvelopeParseError(f"expected <Envelope> root element, found <{local_name(root)}>")

        virtual_system = xml_child(root, 'VirtualSystem')
        network = xml_child(root, 'NetworkSection')
        deployment_option = xml_child(root, 'DeploymentOptionSection')

        return cls(
            virtual_system=VirtualSystem.from_xml(virtual_system) if virtual_system is not None else None,
            network=NetworkSection.from_xml(network) if network is not None else None,
            deployment_option=DeploymentOptionSection.from_xml(deployment_option) if deployment_option is not None else None)


def parse_envelope(data):
    if isinstance(data, str):
        data = data.encode("utf-8")
    parser = ET.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)
    try:
        root = ET.fromstring(data, parser=parser)
    except ET.XMLSyntaxError as e:
        raise EnvelopeParseError(f"failed to parse ovf: {e}") from e
    return Envelope.from_xml(root)
