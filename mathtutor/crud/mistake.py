from typing import Optional, List
from datetime import datetime, timezone
import logging
import secrets
from arango.database import StandardDatabase

from mathtutor.models.mistake import MistakeCreate, MistakeRecord, MistakeKind

logger = logging.getLogger(__name__)


def new_mistake_key(now: datetime) -> str:
    """Ids look like ``mistake-<epoch ms>-<random>``."""
    return f"mistake-{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}"


class MistakeCRUD:
    """
    Append-only mistake log.

    Analytics persistence must never interrupt learning, so write failures
    are logged and swallowed and read failures degrade to an empty log.
    """

    def __init__(self, db: StandardDatabase):
        self.db = db
        self.collection = db.collection('mistake_records')

    def add(
        self,
        mistake: MistakeCreate,
        session_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Optional[MistakeRecord]:
        now = now or datetime.now(timezone.utc)
        document = mistake.model_dump(mode='json', exclude_none=True)
        document.update({
            '_key': new_mistake_key(now),
            'timestamp': now.isoformat(),
            'session_id': session_id
        })

        try:
            result = self.collection.insert(document, return_new=True)
            return MistakeRecord(**result['new'])
        except Exception as e:
            logger.warning(f"⚠️ Could not save {mistake.kind.value} mistake for {mistake.topic_id}: {e}")
            return None

    def list_mistakes(
        self,
        session_id: Optional[str] = None,
        kind: Optional[MistakeKind] = None,
        topic_id: Optional[str] = None,
        since: Optional[datetime] = None
    ) -> List[MistakeRecord]:
        """Records matching the filters, newest first."""
        filters = {}
        if session_id:
            filters['session_id'] = session_id
        if kind:
            filters['kind'] = kind.value
        if topic_id:
            filters['topic_id'] = topic_id

        try:
            records = [MistakeRecord(**doc) for doc in self.collection.find(filters)]
        except Exception as e:
            logger.warning(f"⚠️ Could not read mistake log: {e}")
            return []

        if since is not None:
            records = [record for record in records if record.timestamp >= since]

        return sorted(records, key=lambda record: record.timestamp, reverse=True)

    def delete(self, key: str, session_id: Optional[str] = None) -> bool:
        try:
            doc = self.collection.get(key)
            if not doc or (session_id and doc.get('session_id') != session_id):
                return False
            self.collection.delete(key, ignore_missing=True)
            return True
        except Exception as e:
            logger.warning(f"⚠️ Could not delete mistake {key}: {e}")
            return False

    def clear(self, session_id: Optional[str] = None) -> int:
        try:
            filters = {'session_id': session_id} if session_id else {}
            return self.collection.delete_match(filters)
        except Exception as e:
            logger.warning(f"⚠️ Could not clear mistake log: {e}")
            return 0
