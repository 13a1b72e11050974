"""版本信息"""

__version__ = "0.1.0"
__author__ = "yafo-ai"
__description__ = "基于物化路径（Materialized Path）的树形结构维护库"
