"""
命令行入口：把标准输入 (或文件) 流式上传到 S3 兼容存储

    cat big.tar | python -m s3stream stream-test backups/big.tar
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from .config import StoreConfig
from .core import StreamUploader
from .exceptions import UploadError
from .planner import UNKNOWN_SIZE

logger = logging.getLogger("S3Stream")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="s3stream",
        description="流式分段上传到 S3 兼容对象存储 (连接参数来自环境变量 S3_ADDRESS/ACCESS_KEY/SECRET_KEY/SSL)",
    )
    parser.add_argument("bucket", help="目标桶")
    parser.add_argument("object", help="目标对象路径")
    parser.add_argument("-f", "--file", help="上传该文件而不是标准输入")
    parser.add_argument("--size", type=int, default=None,
                        help="对象大小 (bytes)，上传文件时默认取文件大小")
    parser.add_argument("--content-type", default=None, help="单次上传时的 Content-Type")
    parser.add_argument("-m", "--meta", action="append", default=[], metavar="KEY=VALUE",
                        help="用户自定义元数据，可重复")
    parser.add_argument("--simple", action="store_true", help="使用单次 PutObject 上传 (小文件)")
    parser.add_argument("--create-bucket", action="store_true", help="桶不存在时创建")
    parser.add_argument("--region", default=None, help="创建桶时使用的区域")
    parser.add_argument("--env-file", default=None, help="额外加载的 .env 文件")
    parser.add_argument("--abort-on-failure", action="store_true", help="失败时取消服务端的分段任务")
    parser.add_argument("-q", "--quiet", action="store_true", help="不显示进度条")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出每个分片的调试日志")
    return parser.parse_args(argv)


def parse_metadata(pairs):
    metadata = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"元数据格式应为 KEY=VALUE: {pair}")
        metadata[key] = value
    return metadata


def run(args, environ=None):
    """执行上传，返回写入的字节数"""
    config = StoreConfig.from_env(environ, region=args.region)

    uploader = StreamUploader.from_config(
        config, args.bucket,
        abort_on_failure=args.abort_on_failure,
        show_progress=not args.quiet,
    )

    try:
        if args.create_bucket:
            uploader.ensure_bucket(config.region)

        if args.file:
            with open(args.file, "rb") as source:
                size = args.size if args.size is not None else os.path.getsize(args.file)
                return _upload(uploader, args, source, size)

        size = args.size if args.size is not None else UNKNOWN_SIZE
        return _upload(uploader, args, sys.stdin.buffer, size)
    finally:
        uploader.close()


def _upload(uploader, args, source, size):
    if args.simple:
        return uploader.put_object(args.object, source, args.content_type)
    return uploader.put_stream(args.object, source, parse_metadata(args.meta), size=size)


def main(argv=None):
    args = parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    load_dotenv(args.env_file)

    try:
        written = run(args)
    except (UploadError, ValueError, OSError) as e:
        logger.error(f"上传失败: {e}")
        return 1

    logger.info(f"已写入 {written} bytes -> {args.bucket}/{args.object}")
    return 0
