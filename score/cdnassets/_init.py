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

from score.init import (
    ConfiguredModule, ConfigurationError, parse_list, parse_bool)
import asyncio
import logging
import os
from collections import namedtuple

log = logging.getLogger(__name__)

SCRIPT_TAG = '<script src="%s/%s"></script>'
LESS_TAG = '<link rel="stylesheet/less" type="text/css" href="%s/%s" />'
LESS_LIBRARY_TAG = ('<script src="//cdnjs.cloudflare.com/ajax/libs/less.js/'
                    '1.7.0/less.min.js"></script>')
CSS_TAG = '<link rel="stylesheet" href="%s/%s">'

KINDS = ('js', 'css', 'less')

Bundles = namedtuple('Bundles', KINDS)

CdnConf = namedtuple('CdnConf', (
    'prefix', 'cachebuster', 'use_cachebuster',
    'key', 'secret', 'bucket', 'region', 'endpoint'))

defaults = {
    'rootdir': None,
    'production': False,
    'local_prefix': '/static',
    'extras': [],
    'cdn.prefix': '',
    'cdn.cachebuster': None,
    'cdn.use_cachebuster': True,
    'cdn.key': None,
    'cdn.secret': None,
    'cdn.bucket': None,
    'cdn.region': None,
    'cdn.endpoint': None,
}


def init(confdict, tpl=None):
    """
    Initializes this module acoording to :ref:`our module initialization
    guidelines <module_initialization>` with the following configuration keys:

    :confkey:`rootdir`
        The folder containing all static files. All bundle file lists and
        extras are relative to this folder.

    :confkey:`production` :confdefault:`False`
        Whether tags should point to the compiled bundles on the CDN instead of
        the separate source files.

    :confkey:`local_prefix` :confdefault:`/static`
        URL prefix of the *rootdir* during development.

    :confkey:`js.*`, :confkey:`css.*`, :confkey:`less.*`
        Each of these keys defines a :term:`bundle <asset bundle>`: the part
        after the dot is the bundle name, the value a list of file paths. The
        following defines a javascript bundle called ``app``::

            js.app =
                vendor/jquery.js
                app/main.js

    :confkey:`extras` :confdefault:`[]`
        Folders inside *rootdir*, that will be uploaded to the CDN as they are.

    :confkey:`cdn.prefix` :confdefault:`""`
        URL prefix of the uploaded files, like ``//cdn.example.com``.

    :confkey:`cdn.cachebuster` :confdefault:`None`
        The value appended to production URLs as ``?v=``. Will be determined
        via :func:`score.cdnassets.versioning.discover_cachebuster` if omitted.

    :confkey:`cdn.use_cachebuster` :confdefault:`True`
        Whether the cachebuster should be appended at all.

    :confkey:`cdn.key`, :confkey:`cdn.secret`, :confkey:`cdn.bucket`
        Credentials and bucket name of the S3 storage backing the CDN.

    :confkey:`cdn.region`, :confkey:`cdn.endpoint` :confdefault:`None`
        Optional location of the storage, the endpoint is only needed for
        S3-compatible services other than AWS.
    """
    conf = dict(defaults.items())
    conf.update(confdict)
    rootdir = conf['rootdir']
    if not rootdir:
        raise ConfigurationError('score.cdnassets', 'No rootdir configured')
    if not os.path.isdir(rootdir):
        raise ConfigurationError(
            'score.cdnassets', 'Configured rootdir does not exist')
    production = parse_bool(conf['production'])
    if production and not conf['cdn.prefix']:
        raise ConfigurationError(
            'score.cdnassets', 'Production mode requires a cdn.prefix')
    cachebuster = conf['cdn.cachebuster']
    if not cachebuster:
        from .versioning import discover_cachebuster
        cachebuster = discover_cachebuster(rootdir)
    cdn = CdnConf(
        prefix=conf['cdn.prefix'].rstrip('/'),
        cachebuster=str(cachebuster),
        use_cachebuster=parse_bool(conf['cdn.use_cachebuster']),
        key=conf['cdn.key'],
        secret=conf['cdn.secret'],
        bucket=conf['cdn.bucket'],
        region=conf['cdn.region'],
        endpoint=conf['cdn.endpoint'],
    )
    bundles = Bundles(*(_parse_bundles(conf, kind) for kind in KINDS))
    extras = tuple(parse_list(conf['extras']))
    return ConfiguredCdnassetsModule(
        tpl, rootdir, production, conf['local_prefix'].rstrip('/'), cdn,
        bundles, extras)


def _parse_bundles(conf, kind):
    bundles = {}
    for key, value in conf.items():
        if not key.startswith(kind + '.'):
            continue
        name = key[len(kind) + 1:]
        bundles[name] = tuple(parse_list(value))
    return bundles


class ConfiguredCdnassetsModule(ConfiguredModule):
    """
    This module's :class:`configuration class
    <score.init.ConfiguredModule>`.
    """

    def __init__(self, tpl, rootdir, production, local_prefix, cdn, bundles,
                 extras):
        super().__init__(__package__)
        self.tpl = tpl
        self.rootdir = rootdir
        self.production = production
        self.local_prefix = local_prefix
        self.cdn = cdn
        self.bundles = bundles
        self.extras = extras
        if tpl:
            self._register_tpl_globals()

    def _register_tpl_globals(self):
        html = self.tpl.filetypes['text/html']
        html.add_global('cdnassets_js', self.js, escape=False)
        html.add_global('cdnassets_css', self.css, escape=False)
        html.add_global('cdnassets_less', self.less, escape=False)
        html.add_global('cdnassets_prefix', self.static_prefix, escape=False)

    def set_production(self, production):
        """
        Switches between production and development mode. This is a
        configuration step and must not happen while assets are being rendered
        or published.
        """
        self.production = bool(production)

    def static_prefix(self):
        """
        Returns the URL prefix of all static files in the current mode.
        """
        if self.production:
            return self.cdn.prefix
        return self.local_prefix

    def js(self, name):
        """
        Returns the script tags for the javascript :term:`bundle <asset
        bundle>` with given *name*.
        """
        if self.production:
            return SCRIPT_TAG % (self.cdn.prefix, self._cdn_path('js', name))
        return self._local_tags(SCRIPT_TAG, self.bundles.js.get(name, ()))

    def css(self, name):
        """
        Returns the link tags for the css :term:`bundle <asset bundle>` with
        given *name*.
        """
        if self.production:
            return CSS_TAG % (self.cdn.prefix, self._cdn_path('css', name))
        return self._local_tags(CSS_TAG, self.bundles.css.get(name, ()))

    def less(self, name):
        """
        Returns the link tags for the less :term:`bundle <asset bundle>` with
        given *name*. During development this will include the less.js
        library, which compiles the stylesheets in the browser. The production
        tag points to the compiled css file.
        """
        if self.production:
            return CSS_TAG % (self.cdn.prefix, self._cdn_path('css', name))
        tags = [LESS_TAG % (self.local_prefix, file)
                for file in self.bundles.less.get(name, ())]
        tags.append(LESS_LIBRARY_TAG)
        return '\n'.join(tags)

    def _local_tags(self, template, files):
        return '\n'.join(template % (self.local_prefix, file)
                         for file in files)

    def _cdn_path(self, folder, name):
        path = '%s/%s.%s' % (folder, name, folder)
        if self.cdn.use_cachebuster:
            path += '?v=' + self.cdn.cachebuster
        return path

    def compile(self, kind, name):
        """
        Compiles the :term:`bundle <asset bundle>` of given *kind* (``js``,
        ``css`` or ``less``) and returns the result as `bytes`.
        """
        from .compiler import compile_bundle
        return asyncio.run(compile_bundle(self, kind, name))

    def publish(self, callback=None, *, uploader=None):
        """
        Compiles all bundles and uploads them to the CDN together with all
        configured extras.

        Raises the first error that occurred, unless a *callback* was given:
        that will be invoked with `None` on success, or with the error.
        """
        from .publish import publish_all
        try:
            asyncio.run(publish_all(self, uploader))
        except Exception as e:
            if callback is None:
                raise
            log.error('Publishing failed: %s', e)
            callback(e)
        else:
            if callback is not None:
                callback(None)


class CdnassetsError(Exception):
    """
    Base class for all errors raised while compiling or uploading assets.
    """


class CompilationFailed(CdnassetsError):
    """
    Thrown when a source file could not be compiled or minified. The original
    exception is available as *cause*.
    """

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__('%s: %s' % (path, cause))


class UploadFailed(CdnassetsError):
    """
    Thrown when the storage did not accept an upload. The *status* is the HTTP
    status code of the response, if there was one.
    """

    def __init__(self, path, status):
        self.path = path
        self.status = status
        super().__init__('%s: Status: %s' % (path, status))
