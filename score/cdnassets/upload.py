import asyncio
import functools
import logging
import mimetypes

import boto3
from botocore.exceptions import ClientError

from ._init import UploadFailed

log = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


class S3Uploader:
    """
    Puts files into the S3 bucket backing the CDN. The *cdn* argument is the
    :class:`CdnConf <score.cdnassets.CdnConf>` of a configured module,
    providing credentials and bucket name.

    A *client* with the interface of a boto3 S3 client may be passed to
    replace the one created from the credentials.
    """

    def __init__(self, cdn, client=None):
        self.cdn = cdn
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                's3',
                aws_access_key_id=self.cdn.key,
                aws_secret_access_key=self.cdn.secret,
                region_name=self.cdn.region,
                endpoint_url=self.cdn.endpoint)
        return self._client

    @staticmethod
    def content_type(path):
        """
        Guesses the mime type of an object from the extension of its *path*.
        """
        mimetype, _ = mimetypes.guess_type(path)
        return mimetype or DEFAULT_CONTENT_TYPE

    async def upload(self, path, buffer_or_file):
        """
        Uploads *buffer_or_file* to given destination *path*. The second
        argument is either the content as `bytes`, or the name of a local file.

        Raises :class:`UploadFailed <score.cdnassets.UploadFailed>` if the
        storage responds with a status code other than 2xx.
        """
        log.info('uploading %s', path)
        loop = asyncio.get_running_loop()
        # boto3 clients must not be created concurrently from several threads
        put = functools.partial(self._put, self.client, path, buffer_or_file)
        status = await loop.run_in_executor(None, put)
        if status < 200 or status >= 300:
            raise UploadFailed(path, status)
        return status

    def _put(self, client, path, buffer_or_file):
        kwargs = {
            'Bucket': self.cdn.bucket,
            'Key': path.lstrip('/'),
            'ContentType': self.content_type(path),
        }
        try:
            if isinstance(buffer_or_file, bytes):
                response = client.put_object(Body=buffer_or_file, **kwargs)
            else:
                with open(buffer_or_file, 'rb') as fp:
                    response = client.put_object(Body=fp, **kwargs)
        except ClientError as e:
            status = e.response.get('ResponseMetadata', {})\
                .get('HTTPStatusCode')
            raise UploadFailed(path, status) from e
        return response['ResponseMetadata']['HTTPStatusCode']
