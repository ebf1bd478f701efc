"""领域层模型与异常。

包含：
- models: Message / StreamEvent 数据模型。
- exceptions: 业务异常类型定义。
"""
