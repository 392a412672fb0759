"""
分片规划：根据对象大小计算分片大小、分片数量和最后一个分片的大小
"""
from collections import namedtuple

# --- 分片上传常量 ---
# 假设任意 S3 兼容存储都满足以下约束
MAX_PARTS_COUNT = 10000  # 单个分段任务的分片数上限
MIN_PART_SIZE = 64 * 1024 * 1024  # 64MB，分片大小总是它的整数倍
MAX_MULTIPART_OBJECT_SIZE = 640 * 1024 * 1024 * 1024  # 640GB，未知大小时的规划上限

UNKNOWN_SIZE = -1  # 对象大小未知 (纯流式输入)

PartPlan = namedtuple("PartPlan", ["total_parts_count", "part_size", "last_part_size"])


def _ceil_div(a, b):
    return -(-a // b)


def optimal_part_info(object_size, max_parts_count=MAX_PARTS_COUNT,
                      min_part_size=MIN_PART_SIZE,
                      max_object_size=MAX_MULTIPART_OBJECT_SIZE):
    """
    计算给定对象大小的最优分片方案
    :param object_size: 对象字节数，UNKNOWN_SIZE 表示未知
    :return: PartPlan(total_parts_count, part_size, last_part_size)

    未知大小时按 max_object_size 规划，此时 total_parts_count 只是循环上限，
    last_part_size 也只是规划值，真实的最后一片由数据流何时结束决定。
    """
    if object_size == UNKNOWN_SIZE:
        object_size = max_object_size
    elif object_size < 0:
        raise ValueError(f"非法的对象大小: {object_size}")

    # 先按分片数上限均分，再向上取整到 min_part_size 的整数倍
    part_size = _ceil_div(object_size // max_parts_count, min_part_size) * min_part_size
    part_size = max(part_size, min_part_size)

    if object_size == 0:
        return PartPlan(0, part_size, 0)

    total_parts_count = _ceil_div(object_size, part_size)
    last_part_size = object_size - (total_parts_count - 1) * part_size
    return PartPlan(total_parts_count, part_size, last_part_size)
