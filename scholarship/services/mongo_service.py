"""
MongoDB service: rules, application records and GridFS document storage
"""
from typing import Any, Dict, List, Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorGridFSBucket
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import PyMongoError
import logging

from ..config import settings
from ..errors import PersistenceError
from ..models import DecisionRecord

logger = logging.getLogger(__name__)


class MongoService:
    """Service for MongoDB operations"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db = None
        self.fs: Optional[AsyncIOMotorGridFSBucket] = None

    async def connect(self):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(settings.mongodb_url)
            self.db = self.client[settings.mongodb_db_name]
            self.fs = AsyncIOMotorGridFSBucket(self.db, bucket_name=settings.documents_bucket)

            # Test connection
            await self.client.admin.command('ping')
            logger.info("Connected to MongoDB successfully")

        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def close(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("MongoDB connection closed")

    async def health_check(self) -> bool:
        """Check MongoDB connection health"""
        if self.client is None:
            return False
        try:
            await self.client.admin.command('ping')
            return True
        except PyMongoError:
            return False

    @property
    def rules(self):
        """Collection of {rule_key, rule_value, description} rows"""
        return self.db[settings.rules_collection]

    @property
    def applications(self):
        return self.db[settings.applications_collection]

    # GridFS operations for document storage
    async def store_document(self, key: str, content: bytes, content_type: str) -> str:
        """Store an original document in GridFS and return its URL"""
        try:
            file_id = await self.fs.upload_from_stream(
                key,
                content,
                metadata={"content_type": content_type, "size_bytes": len(content)}
            )
        except PyMongoError as e:
            logger.error(f"Failed to store document {key}: {e}")
            raise PersistenceError(f"Failed to store document: {e}") from e

        logger.info(f"Document stored successfully with ID: {file_id}")
        return f"gridfs://{settings.documents_bucket}/{file_id}"

    # Application record operations
    async def insert_application(self, record: DecisionRecord) -> str:
        """Persist a decision record and return its ID"""
        try:
            record_dict = record.model_dump(exclude={"id"})
            result = await self.applications.insert_one(record_dict)
        except PyMongoError as e:
            logger.error(f"Failed to store application: {e}")
            raise PersistenceError(f"Failed to store application: {e}") from e

        logger.info(f"Application stored: {result.inserted_id}")
        return str(result.inserted_id)

    async def get_application(self, application_id: str) -> Optional[DecisionRecord]:
        """Get an application record by ID"""
        try:
            object_id = ObjectId(application_id)
        except (InvalidId, TypeError):
            return None

        try:
            doc = await self.applications.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Failed to get application: {e}")
            raise PersistenceError(f"Failed to load application: {e}") from e

        if doc is None:
            return None
        doc["_id"] = str(doc["_id"])
        return DecisionRecord(**doc)

    async def list_applications(self, limit: int = 50) -> List[DecisionRecord]:
        """List stored applications, newest first"""
        try:
            cursor = self.applications.find({}).sort("submitted_at", -1).limit(limit)
            records = []
            async for doc in cursor:
                doc["_id"] = str(doc["_id"])
                records.append(DecisionRecord(**doc))
        except PyMongoError as e:
            logger.error(f"Failed to list applications: {e}")
            raise PersistenceError(f"Failed to list applications: {e}") from e
        return records

    async def get_application_stats(self) -> Dict[str, Any]:
        """Count stored applications per status"""
        stats: Dict[str, Any] = {"total_applications": 0}
        pipeline: List[Dict[str, Any]] = [{"$group": {"_id": "$status", "count": {"$sum": 1}}}]
        try:
            async for row in self.applications.aggregate(pipeline):
                stats[f"{row['_id']}_applications"] = row["count"]
                stats["total_applications"] += row["count"]
        except PyMongoError as e:
            logger.error(f"Failed to get application stats: {e}")
            raise PersistenceError(f"Failed to load statistics: {e}") from e
        return stats


# Global MongoDB service instance
mongo_service = MongoService()
