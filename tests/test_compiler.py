import asyncio

import pytest
from lesscpy.exceptions import CompilationError

from score.cdnassets import CompilationFailed, compiler


def run(coroutine):
    return asyncio.run(coroutine)


@pytest.fixture
def slow_reader(monkeypatch):
    """
    Replaces the file reader with one, where earlier files take longer to
    read than later ones. Files named ``fail*`` raise an error instead.
    """
    finished = []

    async def read(path):
        name = path.rsplit('/', 1)[-1]
        index = int(name.split('.')[0][-1])
        await asyncio.sleep(0.05 * (5 - index))
        finished.append(name)
        if name.startswith('fail'):
            raise OSError('cannot read %s' % name)
        return name

    monkeypatch.setattr(compiler, 'read', read)
    return finished


@pytest.mark.parametrize('pipeline', [
    compiler.compile_less, compiler.minify_css, compiler.minify_js])
def test_empty_bundles_compile_to_empty_buffer(rootdir, pipeline):
    assert run(pipeline(str(rootdir), ())) == b''


def test_less_output_keeps_configured_order(rootdir, slow_reader,
                                            monkeypatch):
    monkeypatch.setattr(compiler, 'less_to_css',
                        lambda source, path: '[%s]' % source)
    files = ['file1.less', 'file2.less', 'file3.less']
    result = run(compiler.compile_less(str(rootdir), files))
    assert slow_reader == ['file3.less', 'file2.less', 'file1.less']
    assert result == b'[file1.less][file2.less][file3.less]'


def test_css_output_keeps_configured_order(rootdir, slow_reader,
                                           monkeypatch):
    monkeypatch.setattr(compiler, 'minify_css_source',
                        lambda source, path: source + '\n')
    files = ['file1.css', 'file2.css']
    result = run(compiler.minify_css(str(rootdir), files))
    assert result == b'file1.css\nfile2.css\n'


def test_first_error_is_reported_once(rootdir, slow_reader, monkeypatch):
    monkeypatch.setattr(compiler, 'minify_css_source',
                        lambda source, path: source)
    files = ['fail1.css', 'file2.css', 'fail3.css']
    with pytest.raises(OSError) as excinfo:
        run(compiler.minify_css(str(rootdir), files))
    # fail3 finishes first, fail1 is not cancelled
    assert str(excinfo.value) == 'cannot read fail3.css'
    assert sorted(slow_reader) == sorted(files)


def test_gather_ordered_returns_results_by_position():
    async def value(delay, result):
        await asyncio.sleep(delay)
        return result
    results = run(compiler.gather_ordered([
        value(0.03, 'a'), value(0.01, 'b'), value(0.02, 'c')]))
    assert results == ['a', 'b', 'c']


def test_less_imports_resolve_relative_to_source(rootdir, write,
                                                 monkeypatch):
    path = write('theme/main.less', '.a { width: 1px; }')
    targets = []

    def compile(stream, minify):
        targets.append(stream.name)
        assert minify
        return stream.read()

    monkeypatch.setattr(compiler.lesscpy, 'compile', compile)
    result = run(compiler.compile_less(str(rootdir), ['theme/main.less']))
    assert targets == [path]
    assert result == b'.a { width: 1px; }'


def test_less_is_compiled(rootdir, write):
    write('a.less', '@width: 10px;\n.a { width: @width; }\n')
    write('b.less', '.b { height: 2px; }\n')
    result = run(compiler.compile_less(str(rootdir), ['a.less', 'b.less']))
    assert b'width:10px' in result
    assert result.index(b'.a') < result.index(b'.b')


def test_stray_closing_brace_in_less_fails(rootdir, write):
    write('broken.less', '.a { width: 1px; } }\n')
    with pytest.raises(CompilationFailed) as excinfo:
        run(compiler.compile_less(str(rootdir), ['broken.less']))
    assert excinfo.value.path.endswith('broken.less')
    assert isinstance(excinfo.value.cause, CompilationError)


def test_unterminated_less_block_fails(rootdir, write):
    write('broken.less', '.a { width: ')
    with pytest.raises(CompilationFailed) as excinfo:
        run(compiler.compile_less(str(rootdir), ['broken.less']))
    assert excinfo.value.path.endswith('broken.less')


def test_unclosed_blocks_ignore_strings_and_comments():
    assert compiler.unclosed_blocks('.a { content: "{"; }') == 0
    assert compiler.unclosed_blocks(
        "// don't {\n.a { b: url(x{.png); } /* { */") == 0
    assert compiler.unclosed_blocks('.a { .b { c: d; }') == 1


def test_less_mixin_definitions_compile_to_nothing(rootdir, write):
    write('mixins.less', '.rounded(@r) { border-radius: @r; }\n')
    result = run(compiler.compile_less(str(rootdir), ['mixins.less']))
    assert b'border-radius' not in result


def test_css_strings_are_not_broken(rootdir, write):
    write('a.css', '.x:after { content: "}"; }\n')
    result = run(compiler.minify_css(str(rootdir), ['a.css']))
    assert result.count(b'\n') == 1
    assert b'"}"' in result
    assert result.endswith(b'}\n')


def test_css_data_uris_are_not_broken(rootdir, write):
    write('a.css', ".i { background: url('data:image/svg+xml;utf8,<svg>"
                   "<style>.p{fill:red}</style></svg>') }\n"
                   ".j { color: blue }\n")
    lines = run(compiler.minify_css(str(rootdir), ['a.css'])).splitlines()
    assert len(lines) == 2
    assert b'.p{fill:red}</style></svg>' in lines[0]
    assert lines[1].startswith(b'.j{color:blue')


def test_invalid_utf8_is_replaced(rootdir):
    (rootdir / 'latin1.css').write_bytes(b'a { content: "caf\xe9" }')
    result = run(compiler.minify_css(str(rootdir), ['latin1.css']))
    assert '\ufffd'.encode('UTF-8') in result


def test_css_keeps_one_rule_per_line(rootdir, write):
    write('a.css', 'a {\n  color: red;\n}\n\nb { margin: 0 }\n')
    lines = run(compiler.minify_css(str(rootdir), ['a.css'])).splitlines()
    assert len(lines) == 2
    assert lines[0].startswith(b'a{color:red')
    assert lines[1].startswith(b'b{margin:0')


def test_js_is_concatenated_and_minified(rootdir, write):
    write('a.js', 'var a = 1; // trailing comment')
    write('b.js', 'var b = 2;\n')
    result = run(compiler.minify_js(str(rootdir), ['a.js', 'b.js']))
    assert b'//' not in result
    assert result.index(b'var a=1') < result.index(b'var b=2')


def test_missing_file_fails(rootdir):
    with pytest.raises(OSError):
        run(compiler.minify_js(str(rootdir), ['missing.js']))


def test_compile_bundle_by_name(make_cdnassets, write):
    write('a.css', 'a { color: red }')
    cdnassets = make_cdnassets(**{'css.site': ['a.css']})
    assert cdnassets.compile('css', 'site').startswith(b'a{color:red')
    assert cdnassets.compile('css', 'unknown') == b''
