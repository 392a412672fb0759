"""
边读边算：在一次读取中同时写入缓冲区并更新各个摘要
"""
import hashlib

COPY_BLOCK_SIZE = 1024 * 1024  # 单次 read 的块大小，限制额外内存占用

DEFAULT_ALGORITHMS = ("md5", "sha256")


def new_hashers(names=DEFAULT_ALGORITHMS):
    """为一个分片创建全新的摘要集合 (每个分片独立计算，不能复用)"""
    return {name: hashlib.new(name) for name in names}


def hash_copy_n(hash_algorithms, writer, reader, limit):
    """
    从 reader 拷贝最多 limit 字节到 writer，同时计算摘要
    :param hash_algorithms: {算法名: hashlib 对象}，调用后即作废
    :param writer: 目标 (需要 write 方法)
    :param reader: 数据源 (需要 read 方法)
    :param limit: 本次最多拷贝的字节数
    :return: (实际拷贝字节数, {算法名: 摘要 bytes}, 是否读到 EOF)

    读到 EOF 不算错误，它表示对象的真实大小刚刚确定；
    其它读写异常直接抛出，此时不会返回任何摘要。
    """
    size = 0
    eof = False
    while size < limit:
        block = reader.read(min(COPY_BLOCK_SIZE, limit - size))
        if not block:
            eof = True
            break
        writer.write(block)
        for h in hash_algorithms.values():
            h.update(block)
        size += len(block)

    hash_sums = {name: h.digest() for name, h in hash_algorithms.items()}
    return size, hash_sums, eof


class IteratorReader:
    """
    把 bytes 迭代器 (如 response.iter_content()) 包装成可 read(n) 的对象
    """

    def __init__(self, iterable):
        self._iterator = iter(iterable)
        self._pending = bytearray()

    def read(self, n=-1):
        if n is None or n < 0:
            self._pending.extend(b"".join(self._iterator))
            data = bytes(self._pending)
            self._pending.clear()
            return data

        while len(self._pending) < n:
            try:
                chunk = next(self._iterator)
            except StopIteration:
                break
            self._pending.extend(chunk)

        data = bytes(self._pending[:n])
        del self._pending[:n]
        return data


def as_reader(stream):
    """文件对象原样返回，迭代器则包装为 IteratorReader"""
    if hasattr(stream, "read"):
        return stream
    return IteratorReader(stream)
