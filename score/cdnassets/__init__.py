# Copyright © 2015-2018 STRG.AT GmbH, Vienna, Austria
#
# This file is part of the The SCORE Framework.
#
# The SCORE Framework and all its parts are free software: you can redistribute
# them and/or modify them under the terms of the GNU Lesser General Public
# License version 3 as published by the Free Software Foundation which is in the
# file named COPYING.LESSER.txt.
#
# The SCORE Framework and all its parts are distributed without any WARRANTY;
# without even the implied warranty of MERCHANTABILITY or FITNESS FOR A
# PARTICULAR PURPOSE. For more details see the GNU Lesser General Public
# License.
#
# If you have not received a copy of the GNU Lesser General Public License see
# http://www.gnu.org/licenses/.
#
# The License-Agreement realised between you as Licensee and STRG.AT GmbH as
# Licenser including the issue of its valid conclusion and its pre- and
# post-contractual effects is governed by the laws of Austria. Any disputes
# concerning this License-Agreement including the issue of its valid conclusion
# and its pre- and post-contractual effects are exclusively decided by the
# competent court, in whose district STRG.AT GmbH has its registered seat, at
# the discretion of STRG.AT GmbH also the competent court, in whose district the
# Licensee has his registered seat, an establishment or assets.

"""
This module manages the static assets of a web project that are served via a
content delivery network. Assets are grouped into :term:`bundles <asset
bundle>` of javascript, css or less files.

During development the module renders one HTML tag per file of a bundle,
pointing to the local copy. In production it renders a single tag pointing to
the compiled bundle on the CDN, and it can compile, minify and upload all
bundles to the S3 bucket backing the CDN.
"""

from ._init import (
    init, ConfiguredCdnassetsModule, Bundles, CdnConf, CdnassetsError,
    CompilationFailed, UploadFailed)
from .upload import S3Uploader


__all__ = (
    'init', 'ConfiguredCdnassetsModule', 'Bundles', 'CdnConf',
    'CdnassetsError', 'CompilationFailed', 'UploadFailed', 'S3Uploader')
