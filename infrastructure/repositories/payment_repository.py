"""
支付仓储实现 - 使用SQLAlchemy实现数据访问

聚合计数（total_raised / seats_sold）一律用 ``UPDATE ... SET x = x + :n``
原子递增，不做"读-改-写"，并发事务不会丢失更新。
"""
from decimal import Decimal
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from domain.payment.entity import Booking, BookingStatus, Campaign, Donation, Event
from domain.payment.exceptions import DuplicatePaymentException
from domain.payment.repository import (
    BookingRepository,
    CampaignRepository,
    DonationRepository,
    EventRepository,
)
from infrastructure.models.payment import BookingModel, CampaignModel, DonationModel, EventModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyDonationRepository(DonationRepository):
    """捐赠仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: DonationModel) -> Donation:
        """将数据库模型转换为领域实体"""
        return Donation(
            donation_id=model.id,
            campaign_id=model.campaign_id,
            amount=Decimal(str(model.amount)),
            payment_id=model.payment_id,
            order_id=model.order_id,
            created_at=model.created_at,
        )

    def _to_model(self, entity: Donation) -> DonationModel:
        """将领域实体转换为数据库模型"""
        return DonationModel(
            id=entity.donation_id,
            campaign_id=entity.campaign_id,
            amount=entity.amount,
            payment_id=entity.payment_id,
            order_id=entity.order_id,
            created_at=entity.created_at or datetime.now(timezone.utc),
        )

    async def add(self, donation: Donation) -> Donation:
        """写入捐赠记录（flush 以便立即触发唯一约束）"""
        db_donation = self._to_model(donation)
        self.session.add(db_donation)
        try:
            await self.session.flush()
        except IntegrityError as e:
            msg = str(e.orig if e.orig is not None else e).lower()
            if "payment_id" in msg:
                logger.info("donation_duplicate_rejected", payment_id=donation.payment_id)
                raise DuplicatePaymentException(donation.payment_id) from e
            raise
        logger.info(
            "donation_created",
            donation_id=db_donation.id,
            campaign_id=db_donation.campaign_id,
            payment_id=db_donation.payment_id,
        )
        return self._to_entity(db_donation)

    async def get_by_payment_id(self, payment_id: str) -> Optional[Donation]:
        """根据支付ID获取捐赠"""
        result = await self.session.execute(
            select(DonationModel).where(DonationModel.payment_id == payment_id)
        )
        db_donation = result.scalar_one_or_none()
        return self._to_entity(db_donation) if db_donation else None

    async def list_by_campaign(self, campaign_id: str) -> list[Donation]:
        result = await self.session.execute(
            select(DonationModel)
            .where(DonationModel.campaign_id == campaign_id)
            .order_by(DonationModel.created_at)
        )
        return [self._to_entity(m) for m in result.scalars().all()]


class SQLAlchemyCampaignRepository(CampaignRepository):
    """筹款活动仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, campaign_id: str) -> Optional[Campaign]:
        db_campaign = await self.session.get(CampaignModel, campaign_id, populate_existing=True)
        if db_campaign is None:
            return None
        return Campaign(
            campaign_id=db_campaign.id,
            total_raised=Decimal(str(db_campaign.total_raised)),
            title=db_campaign.title,
        )

    async def add(self, campaign: Campaign) -> Campaign:
        self.session.add(
            CampaignModel(id=campaign.campaign_id, title=campaign.title, total_raised=campaign.total_raised)
        )
        await self.session.flush()
        return campaign

    async def increment_total_raised(self, campaign_id: str, amount: Decimal) -> bool:
        result = await self.session.execute(
            update(CampaignModel)
            .where(CampaignModel.id == campaign_id)
            .values(
                total_raised=CampaignModel.total_raised + amount,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SQLAlchemyEventRepository(EventRepository):
    """售票活动仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, event_id: str) -> Optional[Event]:
        db_event = await self.session.get(EventModel, event_id, populate_existing=True)
        if db_event is None:
            return None
        return Event(event_id=db_event.id, seats_sold=db_event.seats_sold, title=db_event.title)

    async def add(self, event: Event) -> Event:
        self.session.add(EventModel(id=event.event_id, title=event.title, seats_sold=event.seats_sold))
        await self.session.flush()
        return event

    async def increment_seats_sold(self, event_id: str, seats: int) -> bool:
        result = await self.session.execute(
            update(EventModel)
            .where(EventModel.id == event_id)
            .values(
                seats_sold=EventModel.seats_sold + seats,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SQLAlchemyBookingRepository(BookingRepository):
    """预订仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: BookingModel) -> Booking:
        return Booking(
            booking_id=model.id,
            event_id=model.event_id,
            seats=model.seats,
            status=BookingStatus(model.status),
            is_paid=model.is_paid,
            payment_id=model.payment_id,
            confirmed_at=model.confirmed_at,
        )

    async def get(self, booking_id: str) -> Optional[Booking]:
        db_booking = await self.session.get(BookingModel, booking_id, populate_existing=True)
        return self._to_entity(db_booking) if db_booking else None

    async def add(self, booking: Booking) -> Booking:
        self.session.add(
            BookingModel(
                id=booking.booking_id,
                event_id=booking.event_id,
                seats=booking.seats,
                status=booking.status.value,
                is_paid=booking.is_paid,
                payment_id=booking.payment_id,
                confirmed_at=booking.confirmed_at,
            )
        )
        await self.session.flush()
        return booking

    async def mark_confirmed(self, booking_id: str, payment_id: str) -> bool:
        # 以 status='pending' 作为条件：并发确认中只有一个能命中
        result = await self.session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == BookingStatus.PENDING.value,
            )
            .values(
                status=BookingStatus.CONFIRMED.value,
                is_paid=True,
                payment_id=payment_id,
                confirmed_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        transitioned = result.rowcount == 1
        if transitioned:
            logger.info("booking_confirmed", booking_id=booking_id, payment_id=payment_id)
        return transitioned
