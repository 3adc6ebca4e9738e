# File: src/rcon_core/exceptions.py
"""
RCON 核心库 - 异常体系 (Exceptions)

定义库内统一使用的异常类，以便上层应用（如 CLI/GUI）能进行精细的错误处理。
"""


class RconError(Exception):
    """RCON 核心库的所有内部异常的基类。

    上层应用可以通过捕获此异常来处理所有由 rcon-core 抛出的已知错误。
    """

    pass


class ConfigError(RconError):
    """配置加载或校验失败。

    触发场景:
    1. 缺少必要字段 (如 host/password)。
    2. 字段格式错误 (如端口越界、超时为负数)。
    3. 找不到配置文件或环境变量。
    """

    pass


class RconConnectionError(RconError, ConnectionError):
    """连接层面的错误 (I/O 级别)。

    同时继承内置的 ConnectionError，方便上层按标准库习惯捕获。

    触发场景:
    1. TCP 连接建立失败或超时。
    2. 写入失败、对端关闭连接 (EOF)。
    3. 请求在等待响应期间连接被关闭。
    4. 等待响应超时。
    """

    pass


class AuthenticationError(RconError):
    """认证被拒绝 (业务层面的失败)。

    当服务器对 AUTH 请求返回 id = -1 的响应时抛出。
    这通常意味着密码错误，需要用户干预，核心库不会自动重试。
    """

    def __init__(self, message: str, request_id: int | None = None) -> None:
        """初始化认证错误。

        Args:
            message: 错误描述信息。
            request_id: 被拒绝的 AUTH 请求所使用的包 ID。
        """
        super().__init__(message)
        self.request_id = request_id


class ProtocolError(RconError):
    """协议交互错误 (逻辑级别)。

    触发场景:
    1. 数据包长度不足 14 字节或结构损坏。
    2. 长度字段与实际帧长不一致。
    3. 未知的包类型标签。
    4. 编码前置条件不满足 (包体含非 ASCII 字符或 NUL、ID 超出 int32)。
    """

    pass


class UsageError(RconError):
    """调用顺序错误 (FSM Violation)。

    触发场景:
    1. 在已认证的客户端上重复调用登录。
    2. 在未认证状态下发送命令。
    3. 复用已关闭的连接对象。
    4. 同一 ID 的请求尚未完成时再次发送。
    """

    pass
