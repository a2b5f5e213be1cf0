"""
支付数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String,
)
from datetime import datetime, timezone

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CampaignModel(Base):
    """筹款活动：total_raised 只通过原子 UPDATE 递增"""
    __tablename__ = "campaigns"

    id = Column(String(64), primary_key=True, comment="活动ID")
    title = Column(String(255), nullable=True, comment="标题")
    total_raised = Column(
        Numeric(precision=15, scale=2),
        nullable=False,
        default=0,
        comment="累计筹款金额",
    )
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<CampaignModel(id='{self.id}', total_raised={self.total_raised})>"


class DonationModel(Base):
    """
    捐赠记录

    payment_id 唯一约束保证同一笔支付至多入账一次（并发重复投递由数据库拒绝）
    """
    __tablename__ = "donations"

    id = Column(String(64), primary_key=True, comment="捐赠ID")
    campaign_id = Column(
        String(64),
        ForeignKey("campaigns.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="筹款活动ID",
    )
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="捐赠金额（主单位）")
    payment_id = Column(String(100), nullable=False, unique=True, comment="网关支付ID")
    order_id = Column(String(100), nullable=False, index=True, comment="网关订单ID")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, comment="创建时间")

    __table_args__ = (
        Index("ix_donations_campaign_created", "campaign_id", "created_at"),
    )

    def __repr__(self):
        return (
            f"<DonationModel(id='{self.id}', campaign_id='{self.campaign_id}', "
            f"payment_id='{self.payment_id}', amount={self.amount})>"
        )


class EventModel(Base):
    """售票活动：seats_sold 只随预订确认递增"""
    __tablename__ = "events"

    id = Column(String(64), primary_key=True, comment="活动ID")
    title = Column(String(255), nullable=True, comment="标题")
    seats_sold = Column(Integer, nullable=False, default=0, comment="已售座位数")
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class BookingModel(Base):
    """活动预订：status pending -> confirmed"""
    __tablename__ = "bookings"

    id = Column(String(64), primary_key=True, comment="预订ID")
    event_id = Column(
        String(64),
        ForeignKey("events.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        comment="所属活动ID",
    )
    seats = Column(Integer, nullable=False, comment="座位数")
    status = Column(String(20), nullable=False, default="pending", index=True, comment="pending/confirmed")
    is_paid = Column(Boolean, nullable=False, default=False, comment="是否已支付")
    payment_id = Column(String(100), nullable=True, index=True, comment="网关支付ID")
    confirmed_at = Column(DateTime(timezone=True), nullable=True, comment="确认时间")

    def __repr__(self):
        return f"<BookingModel(id='{self.id}', event_id='{self.event_id}', status='{self.status}')>"
