import pytest

from score.cdnassets import init


class FakeS3Client:
    """
    Records all put_object calls and responds with a configurable status.
    """

    def __init__(self, status=200):
        self.status = status
        self.puts = []

    def put_object(self, **kwargs):
        body = kwargs['Body']
        if not isinstance(body, bytes):
            body = body.read()
        self.puts.append(dict(kwargs, Body=body))
        return {'ResponseMetadata': {'HTTPStatusCode': self.status}}


class RecordingUploader:

    def __init__(self, failing=()):
        self.failing = failing
        self.uploads = {}

    async def upload(self, path, buffer_or_file):
        self.uploads[path] = buffer_or_file
        if path in self.failing:
            raise RuntimeError('cannot upload %s' % path)


@pytest.fixture
def rootdir(tmp_path):
    return tmp_path


@pytest.fixture
def write(rootdir):
    def write(path, content):
        file = rootdir / path
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(content)
        return str(file)
    return write


@pytest.fixture
def make_cdnassets(rootdir):
    def make(**conf):
        confdict = {
            'rootdir': str(rootdir),
            'cdn.cachebuster': 'deadbeef',
        }
        confdict.update(conf)
        return init(confdict)
    return make
