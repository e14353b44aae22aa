"""
MongoDB persistence for schedule snapshots and delivered change reports.
Keeps the most recent snapshot per event so the next poll has something to diff against.
"""

from typing import List, Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import ConnectionFailure
import structlog

from .models import Snapshot
from scheduler.models import ChangeReport

logger = structlog.get_logger(__name__)


class SnapshotStore:
    """
    Async MongoDB store for the last seen snapshot of each event.
    """

    def __init__(
        self,
        connection_url: str,
        database_name: str,
        snapshot_collection: str = "snapshots",
        report_collection: str = "change_reports"
    ):
        """
        Initialize the snapshot store.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            snapshot_collection: Collection holding one snapshot per event
            report_collection: Collection holding delivered change reports
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.snapshot_collection_name = snapshot_collection
        self.report_collection_name = report_collection
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.snapshots: Optional[AsyncIOMotorCollection] = None
        self.reports: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]
            self.snapshots = self.database[self.snapshot_collection_name]
            self.reports = self.database[self.report_collection_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        snapshots=self.snapshot_collection_name,
                        reports=self.report_collection_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create indexes for snapshot lookup and report history."""
        try:
            await self.snapshots.create_index("event", unique=True)

            await self.reports.create_index("report_id", unique=True)
            await self.reports.create_index([("event", 1), ("generated_at", DESCENDING)])

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def previous(self, event: str) -> Optional[Snapshot]:
        """
        Get the last saved snapshot of an event.

        Args:
            event: Event name

        Returns:
            Snapshot if one was saved, None otherwise
        """
        document = await self.snapshots.find_one({"event": event})
        if document is None:
            return None

        document.pop('_id', None)
        return Snapshot.model_validate(document)

    async def save(self, snapshot: Snapshot) -> None:
        """
        Replace the stored snapshot of the snapshot's event.

        Args:
            snapshot: Snapshot to keep as the next poll's baseline
        """
        document = snapshot.model_dump(mode="python")
        await self.snapshots.replace_one({"event": snapshot.event}, document, upsert=True)
        logger.debug("Saved snapshot", event_name=snapshot.event, runs=len(snapshot.runs))

    async def save_report(self, report: ChangeReport) -> None:
        """Append a delivered change report to the history."""
        await self.reports.insert_one(report.model_dump(mode="python"))
        logger.debug("Saved change report", report_id=report.report_id, event_name=report.event)

    async def recent_reports(self, event: str, limit: int = 10) -> List[ChangeReport]:
        """
        Get the newest change reports of an event.

        Args:
            event: Event name
            limit: Maximum number of reports to return

        Returns:
            Reports, newest first
        """
        cursor = self.reports.find({"event": event}).sort("generated_at", DESCENDING).limit(limit)
        reports = []
        async for document in cursor:
            document.pop('_id', None)
            reports.append(ChangeReport.model_validate(document))
        return reports

