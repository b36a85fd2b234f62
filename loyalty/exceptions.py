"""
统一异常体系。

所有业务异常继承 BaseAppException，包含：
- type:        错误类型标识（validation_error / not_found / conflict / block / persistence）
- code:        业务错误码（CLIENT_NOT_FOUND / BENEFIT_EXHAUSTED / INVALID_TRANSITION / ...）
- message:     人类可读的描述，前端直接展示给用户
- detail:      可选的附加信息（dict / list / None）
- http_status: HTTP 状态码

Service 层只需 raise，exception_handler 统一捕获并格式化响应。
所有异常都可以在调用方恢复：提示用户，然后允许重试或修正输入。
"""


class BaseAppException(Exception):
    """所有业务异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """输入验证失败（必填字段为空、密码不一致等），400。用户修改后重新提交。"""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


class NotFoundError(BaseAppException):
    """名单 / 患者 / 注册 / 兑换记录不存在，404。不重试。"""

    type = 'not_found'
    code = 'NOT_FOUND'
    http_status = 404


class ConflictError(BaseAppException):
    """
    状态冲突，409。

    ALREADY_REGISTERED：名单客户已注册过
    INVALID_TRANSITION：对终态（approved / rejected / completed / cancelled）再次操作
    """

    type = 'conflict'
    code = 'CONFLICT'
    http_status = 409


class BlockError(BaseAppException):
    """业务规则阻止操作。service 层抛出，409。"""

    type = 'block'
    code = 'BUSINESS_BLOCK'
    http_status = 409


class BenefitExhaustedError(BlockError):
    """该福利已用完（remaining == 0），阻止兑换完成。"""

    code = 'BENEFIT_EXHAUSTED'


class BenefitExpiredError(BlockError):
    """该福利已过期，阻止兑换完成。"""

    code = 'BENEFIT_EXPIRED'


class PersistenceError(BaseAppException):
    """
    best-effort 存储写入失败。

    存储不是权威数据源：默认只记日志，操作继续；
    只有 strict 模式（重试任务）才会抛出，交给 Celery 重试。
    """

    type = 'persistence'
    code = 'PERSISTENCE_FAILED'
    http_status = 503
