"""
Coroutines turning the source files of a :term:`bundle <asset bundle>` into a
single buffer, ready to be uploaded to the CDN.

All files of a bundle are read and transformed concurrently, but the resulting
buffer always contains them in the configured order.
"""

import asyncio
import io
import logging
import os
import re

import aiofiles
import lesscpy
import rcssmin
import rjsmin

from ._init import CompilationFailed

log = logging.getLogger(__name__)

# strings, url() values and comments are matched first, so that braces
# inside them are never mistaken for block delimiters
tokens = re.compile(r"""
    url\(\s*(?:"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|[^)]*)\s*\)
    | "(?:[^"\\]|\\.)*"
    | '(?:[^'\\]|\\.)*'
    | /\*.*?\*/
    | //[^\n]*
    | [{}]
""", re.VERBOSE | re.DOTALL)


async def gather_ordered(aws):
    """
    Runs all awaitables in *aws* concurrently and returns a list of their
    results, in the order the awaitables were given.

    If any of them fails, the first exception to occur is raised once all
    others have finished; their exceptions are discarded. Nothing is
    cancelled.
    """
    failures = []

    def record(task):
        if not task.cancelled() and task.exception() is not None:
            failures.append(task.exception())

    tasks = []
    for aw in aws:
        task = asyncio.ensure_future(aw)
        task.add_done_callback(record)
        tasks.append(task)
    if tasks:
        await asyncio.wait(tasks)
    if failures:
        raise failures[0]
    return [task.result() for task in tasks]


async def read(path):
    async with aiofiles.open(path, 'r', encoding='UTF-8',
                             errors='replace') as fp:
        return await fp.read()


def unclosed_blocks(source):
    """
    Returns the number of blocks opened in given css or less *source*, that
    are never closed.
    """
    depth = 0
    for match in tokens.finditer(source):
        if match.group() == '{':
            depth += 1
        elif match.group() == '}':
            depth = max(depth - 1, 0)
    return depth


def less_to_css(source, path):
    """
    Compiles the less *source* of the file at *path* into minified css.
    Imports are resolved relative to the folder containing *path*.
    """
    # lesscpy silently drops unterminated blocks
    if unclosed_blocks(source):
        raise CompilationFailed(path, SyntaxError('Unterminated block'))
    stream = io.StringIO(source)
    # lesscpy resolves @import statements relative to the stream's name
    stream.name = path
    try:
        return lesscpy.compile(stream, minify=True)
    except Exception as e:
        raise CompilationFailed(path, e) from e


def minify_css_source(source, path):
    """
    Minifies given css *source*, but keeps each rule on its own line.
    """
    try:
        minified = rcssmin.cssmin(source)
    except Exception as e:
        raise CompilationFailed(path, e) from e
    return tokens.sub(_break_after_block, minified)


def _break_after_block(match):
    if match.group() == '}':
        return '}\n'
    return match.group()


async def compile_less(rootdir, files):
    """
    Compiles all less *files* and returns the concatenated css.
    """
    async def compile_file(file):
        path = os.path.join(rootdir, file)
        source = await read(path)
        return less_to_css(source, path).encode('UTF-8')
    buffers = await gather_ordered(compile_file(file) for file in files)
    return b''.join(buffers)


async def minify_css(rootdir, files):
    """
    Minifies all css *files* and returns the concatenated result.
    """
    async def minify_file(file):
        path = os.path.join(rootdir, file)
        source = await read(path)
        return minify_css_source(source, path).encode('UTF-8')
    buffers = await gather_ordered(minify_file(file) for file in files)
    return b''.join(buffers)


async def minify_js(rootdir, files):
    """
    Concatenates all javascript *files* and minifies the result in a single
    pass.
    """
    if not files:
        return b''
    paths = [os.path.join(rootdir, file) for file in files]
    sources = await gather_ordered(read(path) for path in paths)
    # a trailing line comment in one file must not swallow the separator
    joined = '\n;\n'.join(sources)
    try:
        minified = rjsmin.jsmin(joined)
    except Exception as e:
        raise CompilationFailed(', '.join(paths), e) from e
    return minified.encode('UTF-8')


pipelines = {
    'js': minify_js,
    'css': minify_css,
    'less': compile_less,
}


async def compile_bundle(cdnassets, kind, name):
    """
    Compiles the bundle *name* of given *kind* configured in the
    :class:`ConfiguredCdnassetsModule <score.cdnassets.ConfiguredCdnassetsModule>`
    *cdnassets*. Unknown bundles compile to an empty buffer.
    """
    files = getattr(cdnassets.bundles, kind).get(name, ())
    buffer = await pipelines[kind](cdnassets.rootdir, files)
    log.debug('Compiled %s bundle %s (%d bytes)', kind, name, len(buffer))
    return buffer
