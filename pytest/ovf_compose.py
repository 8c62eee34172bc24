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

# Builds OVF descriptors and OVA archives from the yaml files in configs/

import io
import os
import tarfile
from lxml import etree as ET

from ova_spec.envelope import NS_OVF


NS_MAP = {
    None: NS_OVF,
    "ovf" : NS_OVF,
}


def xml_text_element(tag, value):
    elem = ET.Element(tag)
    elem.text = value
    return elem


def xml_bool(value):
    return "true" if value else "false"


class OVFProperty(object):

    def __init__(self, key, type="string",
                 password=None,
                 value=None,
                 user_configurable=None, qualifiers=None,
                 label=None, description=None, category=None,
                 values=None):
        self.key = key
        self.type = type
        self.password = password
        self.value = value
        self.user_configurable = user_configurable
        self.qualifiers = qualifiers
        self.label = label
        self.description = description
        self.category = category
        self.values = values or {}


    def xml_item(self):
        xml_attrs = {
            '{%s}key' % NS_OVF: self.key,
            '{%s}type' % NS_OVF: self.type
        }
        if self.value is not None:
            value = self.value
            if type(value) is bool:
                value = xml_bool(value)
            xml_attrs['{%s}value' % NS_OVF] = str(value)
        if self.qualifiers is not None:
            xml_attrs['{%s}qualifiers' % NS_OVF] = self.qualifiers
        # keep an explicit 'false' so descriptors can carry it
        if self.user_configurable is not None:
            xml_attrs['{%s}userConfigurable' % NS_OVF] = xml_bool(self.user_configurable)
        if self.password is not None:
            xml_attrs['{%s}password' % NS_OVF] = xml_bool(self.password)
        xml_property = ET.Element('{%s}Property' % NS_OVF, xml_attrs)
        if self.label is not None:
            xml_property.append(xml_text_element('{%s}Label' % NS_OVF, self.label))
        if self.description is not None:
            xml_property.append(xml_text_element('{%s}Description' % NS_OVF, self.description))
        for cfg, value in self.values.items():
            xml_property.append(ET.Element('{%s}Value' % NS_OVF, {
                '{%s}value' % NS_OVF: str(value),
                '{%s}configuration' % NS_OVF: cfg
            }))
        return xml_property


class OVFProduct(object):
    # attribute -> element name in XML
    keys = {'info': 'Info', 'product': 'Product', 'vendor': 'Vendor',
            'version': 'Version', 'full_version': 'FullVersion'}

    def __init__(self, **kwargs):
        self.info = "Information about the installed software"
        self.__dict__.update((k, v) for k, v in kwargs.items() if k in self.keys)
        self.class_ = kwargs.get('class')
        self.instance = kwargs.get('instance')
        self.categories = kwargs.get('categories', {})

        self.properties = []
        for k, v in (kwargs.get('properties') or {}).items():
            self.properties.append(OVFProperty(k, **v))


    def xml_item(self):
        attrs = {}
        if self.class_ is not None:
            attrs['{%s}class' % NS_OVF] = str(self.class_)
        if self.instance is not None:
            attrs['{%s}instance' % NS_OVF] = str(self.instance)
        xml_product = ET.Element('{%s}ProductSection' % NS_OVF, attrs)

        for k, xml_name in self.keys.items():
            if getattr(self, k, None) is not None:
                xml_product.append(xml_text_element('{%s}%s' % (NS_OVF, xml_name), getattr(self, k)))

        # category-less properties first, then one block per category
        for prop in self.properties:
            if prop.category is None:
                xml_product.append(prop.xml_item())
        for cat_id, cat_name in self.categories.items():
            xml_product.append(xml_text_element('{%s}Category' % NS_OVF, cat_name))
            for prop in self.properties:
                if prop.category == cat_id:
                    xml_product.append(prop.xml_item())

        return xml_product


class OVFAnnotation(object):

    def __init__(self, text, info="Description of the Product"):
        self.text = text
        self.info = info


    def xml_item(self):
        item = ET.Element('{%s}AnnotationSection' % NS_OVF)
        item.append(xml_text_element('{%s}Info' % NS_OVF, self.info))
        item.append(xml_text_element('{%s}Annotation' % NS_OVF, self.text))
        return item


class OVFConfiguration(object):

    def __init__(self, id, label=None, description=None, default=None):
        self.id = id
        self.label = label or id
        self.description = description or id
        self.default = default


    def xml_item(self):
        attrs = {'{%s}id' % NS_OVF: self.id}
        if self.default is not None:
            attrs['{%s}default' % NS_OVF] = xml_bool(self.default)
        elem = ET.Element('{%s}Configuration' % NS_OVF, attrs)
        elem.append(xml_text_element('{%s}Label' % NS_OVF, self.label))
        elem.append(xml_text_element('{%s}Description' % NS_OVF, self.description))
        return elem


class OVFNetwork(object):

    def __init__(self, name, description=None):
        self.name = name


    def xml_item(self):
        item = ET.Element('{%s}Network' % NS_OVF, {'{%s}name' % NS_OVF : self.name})
        item.append(xml_text_element('{%s}Description' % NS_OVF, f"The {self.name} Network"))
        return item


def annotations_from_config(config):
    texts = []
    if 'annotation' in config:
        texts.append(config['annotation'])
    texts.extend(config.get('annotations', []))
    return [OVFAnnotation(**t) for t in texts]


def compose(config):
    envelope = ET.Element('{%s}Envelope' % NS_OVF, nsmap=NS_MAP)

    if 'configurations' in config:
        dos = ET.Element('{%s}DeploymentOptionSection' % NS_OVF)
        dos.append(xml_text_element('{%s}Info' % NS_OVF, "List of profiles"))
        for id, cfg in config['configurations'].items():
            dos.append(OVFConfiguration(id, **(cfg or {})).xml_item())
        envelope.append(dos)

    if 'networks' in config:
        network_section = ET.Element('{%s}NetworkSection' % NS_OVF)
        network_section.append(xml_text_element('{%s}Info' % NS_OVF, "Virtual Networks"))
        for nw_id, nw in config['networks'].items():
            network_section.append(OVFNetwork(**nw).xml_item())
        envelope.append(network_section)

    system = config.get('system', {})
    virtual_system = ET.Element('{%s}VirtualSystem' % NS_OVF, {'{%s}id' % NS_OVF: 'vm'})
    virtual_system.append(xml_text_element('{%s}Info' % NS_OVF, "Virtual System"))
    virtual_system.append(xml_text_element('{%s}Name' % NS_OVF, system.get('name', 'vm')))
    envelope.append(virtual_system)

    for product in config.get('product_sections', []):
        virtual_system.append(OVFProduct(**product).xml_item())

    for annotation in annotations_from_config(config):
        virtual_system.append(annotation.xml_item())

    return ET.ElementTree(envelope)


def write_ovf(config, ovf_file):
    doc = compose(config)
    with open(ovf_file, "wb") as f:
        doc.write(f, pretty_print=True, xml_declaration=True, encoding="UTF-8")


def write_ova(ovf_file, ova_file, extra_files=None):
    # the descriptor must be the first member of an OVA
    with tarfile.open(ova_file, "w", format=tarfile.USTAR_FORMAT) as tar:
        tar.add(ovf_file, arcname=os.path.basename(ovf_file))
        for name, data in (extra_files or {}).items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
