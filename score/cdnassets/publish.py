"""
Uploads everything a production deployment needs to the CDN: every configured
:term:`bundle <asset bundle>` in its compiled form and all files inside the
configured extras folders.
"""

import logging
import os

from .compiler import compile_bundle, gather_ordered
from .upload import S3Uploader

log = logging.getLogger(__name__)

FOLDERS = {
    'js': 'js',
    'css': 'css',
    'less': 'css',
}


def bundle_destination(kind, name):
    folder = FOLDERS[kind]
    return '/%s/%s.%s' % (folder, name, folder)


def iter_extra_files(rootdir, extra):
    """
    Generates 2-tuples ``(destination, file)`` for every file found below the
    folder *extra* in *rootdir*. The destination is the file's path relative
    to *rootdir*, with a leading slash.
    """
    def fail(error):
        raise error
    for folder, _, files in os.walk(os.path.join(rootdir, extra),
                                    onerror=fail):
        for file in sorted(files):
            file = os.path.join(folder, file)
            relpath = os.path.relpath(file, rootdir)
            yield '/' + relpath.replace(os.sep, '/'), file


async def publish_all(cdnassets, uploader=None):
    """
    Compiles and uploads all bundles and extras of the configured module
    *cdnassets*. Everything runs concurrently, the first error is raised after
    all pending operations have finished.
    """
    if uploader is None:
        uploader = S3Uploader(cdnassets.cdn)

    async def publish_bundle(kind, name):
        buffer = await compile_bundle(cdnassets, kind, name)
        await uploader.upload(bundle_destination(kind, name), buffer)

    extras = [item
              for extra in cdnassets.extras
              for item in iter_extra_files(cdnassets.rootdir, extra)]
    operations = []
    for kind in FOLDERS:
        for name in getattr(cdnassets.bundles, kind):
            operations.append(publish_bundle(kind, name))
    for destination, file in extras:
        operations.append(uploader.upload(destination, file))
    log.info('Publishing %d files to the CDN', len(operations))
    await gather_ordered(operations)
