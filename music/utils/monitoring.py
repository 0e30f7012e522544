import time
import logging
from functools import wraps
from typing import Callable, Any
from django.core.cache import cache

logger = logging.getLogger("music")


class PerformanceMonitor:
    """Performance monitoring utilities for tracking method execution times."""

    @staticmethod
    def track_execution_time(func: Callable) -> Callable:
        """Decorator to track and log function execution time."""
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start_time = time.time()
            result = func(*args, **kwargs)
            execution_time = time.time() - start_time

            logger.info(
                f"{func.__module__}.{func.__name__} executed in {execution_time:.3f}s"
            )

            metric_key = f"perf:{func.__module__}.{func.__name__}"
            cache.set(metric_key, execution_time, timeout=3600)

            return result
        return wrapper

    @staticmethod
    def track_api_call(api_name: str, endpoint: str) -> Callable:
        """Decorator to track calls to identity providers and other outside services."""
        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def wrapper(*args, **kwargs) -> Any:
                start_time = time.time()
                success = False
                error_msg = None

                try:
                    result = func(*args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_msg = str(e)
                    logger.warning(f"API call failed: {api_name}:{endpoint} - {error_msg}")
                    raise
                finally:
                    execution_time = time.time() - start_time
                    logger.info(
                        f"API Call: {api_name}:{endpoint} | "
                        f"Time: {execution_time:.3f}s | "
                        f"Success: {success}"
                    )
                    cache.set(
                        f"api:{api_name}:{endpoint}",
                        {
                            "execution_time": execution_time,
                            "success": success,
                            "error": error_msg,
                        },
                        timeout=3600,
                    )

            return wrapper
        return decorator


class RecommendationMetrics:
    """Track recommendation pass metrics."""

    @staticmethod
    def log_recommendation(user_id: int, track_ids: list, method: str, execution_time: float):
        """Log recommendation generation metrics."""
        logger.info(
            f"Recommendation generated | User: {user_id} | "
            f"Method: {method} | Tracks: {len(track_ids)} | "
            f"Time: {execution_time:.3f}s"
        )

        cache.set(
            f"rec:{user_id}:{method}",
            {
                "track_count": len(track_ids),
                "execution_time": execution_time,
                "method": method,
            },
            timeout=86400,  # 24 hours
        )

    @staticmethod
    def last_recommendation(user_id: int, method: str):
        return cache.get(f"rec:{user_id}:{method}")


class ErrorTracker:
    """Track and categorize unexpected errors."""

    @staticmethod
    def log_error(error_type: str, error_msg: str, context: dict = None):
        """Log error with context for analysis."""
        logger.error(
            f"Error Type: {error_type} | Message: {error_msg} | "
            f"Context: {context or {}}"
        )

        metric_key = f"error:{error_type}"
        current = cache.get(metric_key, [])
        current.append({
            "message": error_msg,
            "context": context,
            "timestamp": time.time(),
        })
        # Keep last 100 errors
        cache.set(metric_key, current[-100:], timeout=86400)

    @staticmethod
    def recent_errors(error_type: str) -> list:
        return cache.get(f"error:{error_type}", [])

    @staticmethod
    def log_api_rate_limit(api_name: str, retry_after: int = None):
        """Log outside-service rate limit events."""
        logger.warning(
            f"API rate limit hit: {api_name} | "
            f"Retry after: {retry_after}s"
        )

        cache.set(f"ratelimit:{api_name}", {
            "timestamp": time.time(),
            "retry_after": retry_after,
        }, timeout=retry_after or 600)
