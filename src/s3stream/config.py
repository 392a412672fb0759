"""
连接配置：显式传入客户端，核心上传逻辑从不读取环境变量
"""
import os

from .exceptions import ConfigError


class StoreConfig:
    """S3 兼容存储的连接参数"""

    # 环境变量名 (沿用原部署脚本的命名)
    ENV_SERVER = "S3_ADDRESS"
    ENV_ACCESS_KEY = "ACCESS_KEY"
    ENV_SECRET_KEY = "SECRET_KEY"
    ENV_SSL = "SSL"
    ENV_REGION = "S3_REGION"
    ENV_SIGNATURE = "S3_SIGNATURE"

    # v4 签名必须带区域，未配置时使用 S3 的默认区域
    DEFAULT_V4_REGION = "us-east-1"

    def __init__(self, server, access_key, secret_key, is_secure=False,
                 signature="v4", region=None):
        if not all([server, access_key, secret_key]):
            raise ConfigError("必须提供 Server, Access Key 和 Secret Key")
        self.server = server
        self.access_key = access_key
        self.secret_key = secret_key
        self.is_secure = is_secure
        self.signature = signature
        if region is None and signature == "v4":
            region = self.DEFAULT_V4_REGION
        self.region = region

    @classmethod
    def from_env(cls, environ=None, region=None):
        """
        从环境变量构造配置
        :param environ: 默认为 os.environ，测试时可传入 dict
        :param region: S3_REGION 未设置时使用的区域
        """
        env = os.environ if environ is None else environ

        missing = [name for name in (cls.ENV_SERVER, cls.ENV_ACCESS_KEY, cls.ENV_SECRET_KEY)
                   if not env.get(name)]
        if missing:
            raise ConfigError(f"缺少环境变量: {', '.join(missing)}")

        return cls(
            server=env[cls.ENV_SERVER],
            access_key=env[cls.ENV_ACCESS_KEY],
            secret_key=env[cls.ENV_SECRET_KEY],
            # 只要 SSL 非空即开启 HTTPS
            is_secure=bool(env.get(cls.ENV_SSL)),
            signature=env.get(cls.ENV_SIGNATURE) or "v4",
            region=env.get(cls.ENV_REGION) or region,
        )

    def __repr__(self):
        return (f"StoreConfig(server={self.server!r}, is_secure={self.is_secure}, "
                f"signature={self.signature!r}, region={self.region!r})")
