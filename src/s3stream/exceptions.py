# ==========================================
# 🚨 自定义异常类
# ==========================================


class UploadError(Exception):
    """上传基础异常类

    bytes_written: 异常发生前已被存储端接受的字节数 (已上传的分片不会回滚)
    """

    def __init__(self, message, bytes_written=0):
        super().__init__(message)
        self.bytes_written = bytes_written


class ConfigError(UploadError):
    """连接配置缺失或非法"""
    pass


class StorageError(UploadError):
    """存储端返回了错误响应 (HTTP status >= 300)"""

    def __init__(self, message, status=None, error_code=None, error_message=None):
        super().__init__(message)
        self.status = status
        self.error_code = error_code
        self.error_message = error_message


class InitiateUploadError(UploadError):
    """初始化分段上传任务失败，没有任何数据被传输"""
    pass


class ReadError(UploadError):
    """从数据源读取分片时发生非 EOF 错误"""
    pass


class PartUploadError(UploadError):
    """单个分片上传失败异常"""

    def __init__(self, message, part_number=None, bytes_written=0):
        super().__init__(message, bytes_written)
        self.part_number = part_number


class UnexpectedEOFError(UploadError):
    """已知大小的对象提前结束，实际上传量与声明大小不一致"""

    def __init__(self, message, expected_size=None, bytes_written=0):
        super().__init__(message, bytes_written)
        self.expected_size = expected_size


class PartLimitExceededError(UploadError):
    """分片数已达上限，但数据流仍未结束"""

    def __init__(self, message, max_parts=None, part_size=None, bytes_written=0):
        super().__init__(message, bytes_written)
        self.max_parts = max_parts  # 本次规划的分片数上限
        self.part_size = part_size  # 当前分片大小 (bytes)


class MissingPartError(UploadError):
    """合并前发现分片记录不连续 (内部记账错误)"""

    def __init__(self, message, part_number=None, bytes_written=0):
        super().__init__(message, bytes_written)
        self.part_number = part_number


class CompleteUploadError(UploadError):
    """存储端拒绝合并请求 (ETag 不匹配、任务不存在等)"""
    pass


class StreamTooLongError(UploadError):
    """数据流长度超过声明的对象大小，超出部分未上传"""

    def __init__(self, message, expected_size=None, bytes_written=0):
        super().__init__(message, bytes_written)
        self.expected_size = expected_size
