"""
Feature source client for the dashboard's heatmap endpoint.

Fetches the GeoJSON FeatureCollection of occurrences for a time range and an
optional map bounding box from `GET {api_url}/heatmap/hexagons`. The binning
engine never does I/O; callers pass the returned collection to
`HexagonLayer.refresh` or `features.reduce_features`.
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional

import requests

from ..config import api_settings
from ..utils.exceptions import FeatureSourceError
from ..utils.logger_config import setup_logger
from ..viewport import Viewport

logger = setup_logger(__name__)

API_DATE_FORMAT = '%Y-%m-%dT%H:%M:%S'


class FeatureSourceClient:
    """
    Thin client over the heatmap REST endpoint with retry and backoff.

    Attributes:
        api_url (str): base URL of the dashboard API
        timeout (float): per-request timeout in seconds
        retries (int): attempts before giving up
        rate_limit (float): base wait between attempts in seconds

    Example:
        >>> client = FeatureSourceClient()
        >>> collection = client.fetch(datetime(2025, 1, 1), datetime(2025, 1, 31))
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: int = 3,
        rate_limit: float = 1.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        default_url, default_timeout = api_settings()
        self.api_url = (api_url or default_url).rstrip('/')
        self.timeout = timeout if timeout is not None else default_timeout
        self.retries = retries
        self.rate_limit = rate_limit
        self.session = session or requests.Session()

    @staticmethod
    def build_params(start: datetime, end: datetime, bounds: Optional[Viewport] = None) -> Dict[str, str]:
        """
        Query parameters understood by the heatmap endpoint.

        Args:
            start (datetime): beginning of the period
            end (datetime): end of the period
            bounds (Viewport): optional map bounds to filter on server side
        """
        params = {
            'periodoInicio': start.strftime(API_DATE_FORMAT),
            'periodoFim': end.strftime(API_DATE_FORMAT),
        }
        if bounds is not None:
            params.update({
                'minLat': str(bounds.south),
                'maxLat': str(bounds.north),
                'minLng': str(bounds.west),
                'maxLng': str(bounds.east),
            })
        return params

    def _get(self, url: str, params: Dict[str, str]) -> requests.Response:
        for attempt in range(self.retries):
            try:
                logger.debug(f'Requesting: {url} {params}')
                response = self.session.get(url, params=params, timeout=self.timeout)

                if response.status_code == 200:
                    return response

                elif response.status_code == 429:  # Rate limit
                    wait_time = min((attempt + 1) * self.rate_limit * 2, 60)
                    logger.warning(f'Rate Limit Exceeded, waiting for {wait_time}s')
                    time.sleep(wait_time)
                else:
                    logger.error(f'Request failed with status {response.status_code}: {response.text[:200]}')
                    time.sleep(self.rate_limit * (attempt + 1))  # Progressive backoff

            except requests.exceptions.RequestException as e:
                logger.error(f'Network error (attempt {attempt + 1}): {str(e)}')
                if attempt == self.retries - 1:
                    raise FeatureSourceError(f'Network error after {self.retries} attempts: {str(e)}')
                time.sleep(self.rate_limit * (attempt + 1))

        raise FeatureSourceError(f'No successful response from {url} after {self.retries} attempts')

    def fetch(self, start: datetime, end: datetime, bounds: Optional[Viewport] = None) -> Dict[str, Any]:
        """
        Fetch the occurrence FeatureCollection for a period.

        Raises:
            FeatureSourceError: network failure, non-200 after retries or a non-JSON body
        """
        url = f'{self.api_url}/heatmap/hexagons'
        response = self._get(url, self.build_params(start, end, bounds))
        try:
            payload = response.json()
        except ValueError as e:
            raise FeatureSourceError(f'Heatmap response is not JSON: {str(e)}')

        if not isinstance(payload, dict) or not isinstance(payload.get('features'), list):
            logger.warning('Heatmap response has no features list, treating as empty')
            return {'type': 'FeatureCollection', 'features': []}

        logger.info(f"Fetched {len(payload['features']):,} features for {start:%Y-%m-%d} → {end:%Y-%m-%d}")
        return payload
