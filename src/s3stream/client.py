"""
存储客户端：基于 OBS SDK 封装分段上传所需的全部操作
"""
import base64
import logging

from obs import ObsClient, CompleteMultipartUploadRequest, CompletePart, PutObjectHeader

from .exceptions import StorageError

logger = logging.getLogger("S3Stream")


class ObsStorageClient:
    """
    S3 兼容对象存储客户端
    所有方法在服务端返回 status >= 300 时抛出 StorageError
    """

    def __init__(self, config):
        self.config = config
        kwargs = dict(
            access_key_id=config.access_key,
            secret_access_key=config.secret_key,
            server=config.server,
            is_secure=config.is_secure,
            signature=config.signature,
        )
        if config.region:
            kwargs["region"] = config.region
        self.client = ObsClient(**kwargs)

    def bucket_exists(self, bucket):
        resp = self.client.headBucket(bucket)
        if resp.status == 404:
            return False
        self._check_error(resp)
        return True

    def create_bucket(self, bucket, region=None):
        logger.info(f"正在创建桶: {bucket} (region: {region})")
        resp = self.client.createBucket(bucket, location=region)
        self._check_error(resp)

    def initiate_multipart_upload(self, bucket, key, metadata=None):
        """创建分段上传任务，返回 uploadId"""
        resp = self.client.initiateMultipartUpload(bucket, key, metadata=metadata or None)
        self._check_error(resp)
        return resp.body.uploadId

    def upload_part(self, bucket, key, upload_id, part_number, size, data, md5=None):
        """
        上传单个分片，返回服务端 ETag
        :param md5: 分片 MD5 摘要 (bytes)，以 Content-MD5 形式交给服务端校验
        """
        resp = self.client.uploadPart(
            bucketName=bucket, objectKey=key, partNumber=part_number,
            uploadId=upload_id, content=data, partSize=size,
            md5=base64.b64encode(md5).decode() if md5 is not None else None
        )
        self._check_error(resp)
        return resp.body.etag

    def complete_multipart_upload(self, bucket, key, upload_id, parts):
        """
        合并分片
        :param parts: 按分片号升序排列的 (part_number, etag) 序列
        """
        complete_parts = [CompletePart(partNum=num, etag=etag) for num, etag in parts]
        resp = self.client.completeMultipartUpload(
            bucket, key, upload_id,
            CompleteMultipartUploadRequest(complete_parts)
        )
        self._check_error(resp)

    def abort_multipart_upload(self, bucket, key, upload_id):
        resp = self.client.abortMultipartUpload(bucket, key, upload_id)
        self._check_error(resp)

    def put_object(self, bucket, key, reader, content_type=None):
        """
        单次上传 (非流式的简单路径)，返回写入的字节数
        整个对象会读入内存，只适合小文件
        """
        data = reader.read()
        headers = PutObjectHeader(contentType=content_type) if content_type else None
        resp = self.client.putContent(bucket, key, content=data, headers=headers)
        self._check_error(resp)
        return len(data)

    def close(self):
        self.client.close()

    def _check_error(self, resp):
        if resp.status >= 300:
            raise StorageError(
                f"OBS Error {resp.errorCode}: {resp.errorMessage}",
                status=resp.status, error_code=resp.errorCode, error_message=resp.errorMessage
            )
