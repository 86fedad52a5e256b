import logging
from flask import Blueprint, render_template, request, redirect, url_for, flash, current_app
from sqlalchemy.exc import SQLAlchemyError
from .models import db, BUTTON_ACTIONS
from .services.auth import login_required, current_user, get_user_role
from .services.rate_limit import check_rate, RateLimitExceeded
from .services import codes as code_service
from .services.codes import ClaimError, ActivationError
from .services.profiles import (get_owned_profile, update_profile, add_button, delete_button,
                                ProfileError, TEXT_FIELDS, SOCIAL_FIELDS, COLOR_FIELDS)

logger = logging.getLogger(__name__)

bp = Blueprint('dashboard', __name__)


@bp.get('/dashboard')
@login_required
def dashboard():
    user = current_user()
    return render_template(
        'dashboard.html',
        user=user,
        greeting=user.email.split('@')[0],
        user_role=get_user_role(user.id),
        profiles=code_service.user_profiles(user.id),
        review_plaques=code_service.user_review_plaques(user.id),
    )


@bp.post('/dashboard/claim')
@login_required
def claim():
    user = current_user()
    try:
        limit, window = current_app.config['CLAIM_RATE_LIMIT']
        check_rate('claim', user.id, limit, window)
        code_service.claim_code(user, request.form.get('code', ''))
    except (ClaimError, RateLimitExceeded) as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error claiming code")
        flash('Something went wrong, please try again', 'error')
    else:
        flash('Card added successfully!', 'success')
    return redirect(url_for('dashboard.dashboard'))


@bp.route('/activate/<code>', methods=['GET', 'POST'])
@login_required
def activate(code: str):
    user = current_user()
    record = code_service.get_code(code)
    if record is None:
        flash('Invalid code', 'error')
        return redirect(url_for('dashboard.dashboard'))
    if record.assigned_to and record.assigned_to != user.id:
        flash('Code already assigned', 'error')
        return redirect(url_for('dashboard.dashboard'))

    if record.type == 'review':
        return _activate_review(user, record)

    try:
        record = code_service.activate_profile_code(user, code)
    except ActivationError as e:
        flash(str(e), 'error')
        return redirect(url_for('dashboard.dashboard'))
    flash('Your card is active. Set up your profile below.', 'success')
    return redirect(url_for('dashboard.profile_edit', url=record.url))


def _activate_review(user, record):
    form = {
        'place_id': request.form.get('place_id', ''),
        'place_name': request.form.get('place_name', ''),
        'title': request.form.get('title', record.title or ''),
        'description': request.form.get('description', record.description or ''),
    }
    if request.method == 'POST':
        try:
            code_service.activate_review_code(user, record.code, form['place_id'],
                                              form['title'], form['description'])
        except ActivationError as e:
            flash(str(e), 'error')
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception(f"Error updating review plaque {record.code}")
            flash('Failed to update review plaque', 'error')
        else:
            flash('Review plaque updated successfully!', 'success')
            return redirect(url_for('dashboard.dashboard'))
    return render_template(
        'review_form.html',
        code=record,
        form=form,
        debounce_ms=current_app.config['PLACES_DEBOUNCE_MS'],
        min_length=current_app.config['PLACES_MIN_QUERY_LENGTH'],
    )


@bp.route('/profile/<url>/edit', methods=['GET', 'POST'])
@login_required
def profile_edit(url: str):
    try:
        profile = get_owned_profile(current_user(), url)
    except ProfileError as e:
        flash(str(e), 'error')
        return redirect(url_for('dashboard.dashboard'))

    if request.method == 'POST':
        try:
            update_profile(profile, request.form.to_dict())
        except ProfileError as e:
            db.session.rollback()
            flash(str(e), 'error')
        else:
            flash('Profile updated', 'success')
            return redirect(url_for('dashboard.profile_edit', url=url))
    return render_template(
        'profile_edit.html',
        profile=profile,
        url=url,
        text_fields=TEXT_FIELDS,
        social_fields=SOCIAL_FIELDS,
        color_fields=COLOR_FIELDS,
        button_actions=BUTTON_ACTIONS,
    )


@bp.post('/profile/<url>/buttons')
@login_required
def button_add(url: str):
    try:
        profile = get_owned_profile(current_user(), url)
        add_button(profile, request.form.get('label'), request.form.get('action_type'),
                   request.form.get('action_value'))
    except ProfileError as e:
        flash(str(e), 'error')
    else:
        flash('Button added', 'success')
    return redirect(url_for('dashboard.profile_edit', url=url))


@bp.post('/profile/<url>/buttons/<button_id>/delete')
@login_required
def button_delete(url: str, button_id: str):
    try:
        profile = get_owned_profile(current_user(), url)
        delete_button(profile, button_id)
    except ProfileError as e:
        flash(str(e), 'error')
    else:
        flash('Button removed', 'success')
    return redirect(url_for('dashboard.profile_edit', url=url))
