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

from .archive import ArchiveError, InvalidExtensionError, open_archive, read_ovf
from .envelope import Envelope, EnvelopeParseError, parse_envelope
from .spec import Options, ValidationError, build_spec, load_options, map_properties


__version__ = "0.1.0"
