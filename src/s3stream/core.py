import os
import time
import logging
from io import BytesIO
from collections import namedtuple

from tqdm import tqdm

from .client import ObsStorageClient
from .exceptions import (UploadError, InitiateUploadError, ReadError, PartUploadError,
                         UnexpectedEOFError, StreamTooLongError, PartLimitExceededError,
                         MissingPartError, CompleteUploadError)
from .hashing import new_hashers, hash_copy_n, as_reader
from .planner import (optimal_part_info, UNKNOWN_SIZE, MAX_PARTS_COUNT, MIN_PART_SIZE,
                      MAX_MULTIPART_OBJECT_SIZE)

logger = logging.getLogger("S3Stream")

# 分片上传成功后的记录，创建后不再修改
PartRecord = namedtuple("PartRecord", ["part_number", "etag", "size"])


class UploadSession:
    """
    上传会话：一次分段上传任务的状态
    只在分片上传成功后推进 (next_part + 1, total_transferred 累加)
    """

    def __init__(self, bucket, key, upload_id, next_part=1, total_transferred=0):
        self.bucket = bucket
        self.key = key
        self.upload_id = upload_id  # 服务端分段任务 ID
        self.next_part = next_part  # 下一个分片号 (从 1 开始，连续)
        self.total_transferred = total_transferred  # 已被服务端接受的字节数
        self.parts = {}  # {part_number: PartRecord}

    def record(self, part):
        self.parts[part.part_number] = part
        self.next_part += 1
        self.total_transferred += part.size

    def completed_parts(self):
        """按分片号升序返回 1..next_part-1 的全部记录，缺号视为内部记账错误"""
        ordered = []
        for part_number in range(1, self.next_part):
            part = self.parts.get(part_number)
            if part is None:
                raise MissingPartError(f"缺少分片 #{part_number}",
                                       part_number=part_number,
                                       bytes_written=self.total_transferred)
            ordered.append(part)
        # 合并请求要求分片号严格递增
        ordered.sort(key=lambda p: p.part_number)
        return ordered


class StreamUploader:
    """
    S3 兼容存储流式上传工具 (顺序分片，内存占用为一个分片大小)
    """

    # --- 分片上传常量 ---
    MAX_PARTS_COUNT = MAX_PARTS_COUNT  # 单个任务的分片数上限
    MIN_PART_SIZE = MIN_PART_SIZE  # 分片大小的最小单位
    MAX_OBJECT_SIZE = MAX_MULTIPART_OBJECT_SIZE  # 未知大小时按此规划

    # 每个分片只计算 MD5 (Content-MD5 校验)
    HASH_ALGORITHMS = ("md5",)

    def __init__(self, client, bucket_name, abort_on_failure=False, show_progress=True):
        """
        :param client: 存储客户端 (ObsStorageClient 或实现相同方法的对象)
        :param bucket_name: 目标桶
        :param abort_on_failure: 失败时是否主动取消服务端的分段任务
        :param show_progress: 是否显示 tqdm 进度条
        """
        self.client = client
        self.bucket = bucket_name
        self.abort_on_failure = abort_on_failure
        self.show_progress = show_progress

    @classmethod
    def from_config(cls, config, bucket_name, **kwargs):
        """根据 StoreConfig 创建 OBS 客户端并构造上传器"""
        return cls(ObsStorageClient(config), bucket_name, **kwargs)

    def plan(self, size=UNKNOWN_SIZE):
        return optimal_part_info(size, self.MAX_PARTS_COUNT, self.MIN_PART_SIZE,
                                 self.MAX_OBJECT_SIZE)

    def ensure_bucket(self, region=None):
        """桶不存在时创建"""
        if self.client.bucket_exists(self.bucket):
            logger.info(f"桶已存在: {self.bucket}")
            return False
        self.client.create_bucket(self.bucket, region)
        return True

    def put_object(self, object_key, stream, content_type=None):
        """单次上传小对象，返回写入的字节数"""
        logger.info(f"单次上传: {object_key}")
        return self.client.put_object(self.bucket, object_key, as_reader(stream), content_type)

    def init_upload(self, object_key, metadata=None):
        """
        【第一步】创建新的分段上传任务
        :param object_key: 目标路径
        :param metadata: 用户自定义元数据 dict
        :return: UploadSession 对象
        """
        logger.info(f"正在初始化任务: {object_key} ...")
        try:
            upload_id = self.client.initiate_multipart_upload(self.bucket, object_key, metadata)
        except Exception as e:
            raise InitiateUploadError(f"初始化分段上传失败: {e}") from e
        logger.info(f"[新任务] 已创建任务ID: {upload_id}")
        return UploadSession(self.bucket, object_key, upload_id)

    def put_stream(self, object_key, stream, metadata=None, size=UNKNOWN_SIZE):
        """
        流式上传一个对象
        :param object_key: 目标路径
        :param stream: 文件对象 (read) 或 bytes 迭代器
        :param metadata: 用户自定义元数据 dict
        :param size: 对象大小，未知时为 UNKNOWN_SIZE
        :return: 写入的总字节数
        :raises UploadError: 其 bytes_written 为失败前已被服务端接受的字节数
        """
        session = self.init_upload(object_key, metadata)

        try:
            self._process_stream(session, as_reader(stream), size)
            self._complete_upload(session)
        except UploadError as e:
            logger.error(f"上传过程中断: {e} (已上传 {e.bytes_written} bytes)")
            if self.abort_on_failure:
                self._abort_after_failure(session)
            raise

        return session.total_transferred

    def abort_upload(self, session):
        """取消服务端的分段任务，已上传的分片会被清理"""
        logger.info(f"正在取消任务: {session.key} ({session.upload_id})")
        self.client.abort_multipart_upload(session.bucket, session.key, session.upload_id)

    def close(self):
        """释放客户端连接"""
        self.client.close()

    def _process_stream(self, session, reader, size):
        """读取 -> 计算摘要 -> 上传分片，逐片顺序执行"""
        plan = self.plan(size)
        known_size = size != UNKNOWN_SIZE
        # 空对象也要上传一个空分片才能合并
        total_parts = max(plan.total_parts_count, 1)
        part_size = plan.part_size
        logger.info(f"分片规划: 分片大小 {part_size} bytes, 分片数上限 {total_parts}")

        buffer = BytesIO()  # 复用的临时缓冲区
        eof = False

        with tqdm(
            total=size if known_size else None,
            unit='B',
            unit_scale=True,
            desc=f"🚀 Uploading {os.path.basename(session.key)}",
            mininterval=5,
            dynamic_ncols=True,
            disable=not self.show_progress
        ) as pbar:
            while session.next_part <= total_parts:
                part_number = session.next_part
                limit = part_size
                if known_size:
                    limit = min(part_size, size - session.total_transferred)

                try:
                    try:
                        part_len, hash_sums, eof = hash_copy_n(
                            new_hashers(self.HASH_ALGORITHMS), buffer, reader, limit
                        )
                    except Exception as e:
                        raise ReadError(f"读取分片 #{part_number} 失败: {e}",
                                        bytes_written=session.total_transferred) from e

                    # 数据长度恰好是分片大小的整数倍时，最后会读到一个空分片
                    if part_len == 0 and eof and (part_number > 1 or size > 0):
                        logger.debug(f"分片 #{part_number} 为空，跳过")
                        break

                    self._upload_part(session, part_number, buffer.getvalue(), hash_sums)
                finally:
                    buffer.seek(0)
                    buffer.truncate()

                pbar.update(part_len)

                # 未知大小的流读到 EOF 即结束，不必跑满 total_parts
                if eof:
                    break

        if known_size:
            if session.total_transferred != size:
                raise UnexpectedEOFError(
                    f"数据流提前结束: 期望 {size} bytes, 实际 {session.total_transferred} bytes",
                    expected_size=size, bytes_written=session.total_transferred
                )
            if not eof and self._has_more_data(session, reader):
                raise StreamTooLongError(
                    f"数据流超出声明大小 {size} bytes",
                    expected_size=size, bytes_written=session.total_transferred
                )
        elif not eof and self._has_more_data(session, reader):
            raise PartLimitExceededError(
                f"已上传 {total_parts} 个分片，数据流仍未结束",
                max_parts=total_parts, part_size=part_size,
                bytes_written=session.total_transferred
            )

    def _has_more_data(self, session, reader):
        """读一个字节判断数据流是否还有剩余 (只在即将结束时调用)"""
        try:
            return bool(reader.read(1))
        except Exception as e:
            raise ReadError(f"检查数据流结尾失败: {e}",
                            bytes_written=session.total_transferred) from e

    def _upload_part(self, session, part_number, data, hash_sums):
        """上传单个分片 (不重试)，成功后记入会话"""
        data_len = len(data)
        start_time = time.time()
        try:
            etag = self.client.upload_part(
                session.bucket, session.key, session.upload_id, part_number,
                data_len, data,
                md5=hash_sums["md5"]
            )
        except Exception as e:
            raise PartUploadError(f"分片 #{part_number} 上传失败: {e}",
                                  part_number=part_number,
                                  bytes_written=session.total_transferred) from e

        duration = time.time() - start_time
        speed = (data_len / 1024 / 1024) / duration if duration > 0 else 0
        logger.debug(f"分片 #{part_number} 上传成功 | "
                     f"大小: {data_len / 1024 / 1024:.2f}MB | "
                     f"耗时: {duration:.1f}s | "
                     f"速度: {speed:.1f}MB/s")

        session.record(PartRecord(part_number, etag, data_len))

    def _complete_upload(self, session):
        """合并分片"""
        logger.info("流传输结束，正在请求合并分片...")
        parts = session.completed_parts()

        try:
            self.client.complete_multipart_upload(
                session.bucket, session.key, session.upload_id,
                [(p.part_number, p.etag) for p in parts]
            )
        except Exception as e:
            raise CompleteUploadError(f"合并分片失败: {e}",
                                      bytes_written=session.total_transferred) from e
        logger.info(f"✅ 上传成功: {session.key} ({session.total_transferred} bytes, {len(parts)} parts)")

    def _abort_after_failure(self, session):
        try:
            self.abort_upload(session)
        except Exception as e:
            # 原始错误优先抛出，取消失败只记录
            logger.warning(f"取消任务失败: {e}")
